class UnsupportedDataKind(ValueError):
    """Raised when no independence test is registered for a data kind and test type."""


class KnowledgeConflict(ValueError):
    """Raised when background knowledge requires an edge it also forbids."""


class SearchAborted(RuntimeError):
    """Raised when an independence test fails in the middle of a search.

    Parameters
    ----------
    cause : Exception
        The exception raised by the conditional independence test.
    message : str, optional
        Additional context, such as the variables being tested.
    """

    def __init__(self, cause: Exception, message: str = "") -> None:
        self.cause = cause
        if not message:
            message = f"Search aborted by a failed independence test: {cause!r}"
        super().__init__(message)
