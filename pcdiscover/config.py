from dataclasses import dataclass
from enum import Enum, EnumMeta


class MetaEnum(EnumMeta):
    """Meta class to enable easy checks for Enums."""

    def __contains__(cls, item):
        """Allows 'contain' checks.

        Example: ``is 'method' in EnumClass``.
        """
        try:
            cls(item)
        except ValueError:
            return False
        return True


class IndTestType(Enum, metaclass=MetaEnum):
    """Available conditional independence tests for a search.

    Notes
    -----
    Allows 'contains' checks because of the metaclass. For example,
    one can run ``"fisherz" in IndTestType``, which would return `True`.
    """

    DEFAULT = "default"
    """Pick the test from the kind of input: Fisher-Z for continuous data,
    G-square for discrete data, and the matching oracle for graphs and facts.
    """

    FISHER_Z = "fisherz"
    """Fisher-Z test of vanishing partial correlation for Gaussian data."""

    G_SQUARE = "gsquare"
    """G-square likelihood ratio test for discrete data."""

    D_SEPARATION = "dseparation"
    """d-separation queries over a known causal DAG."""

    INDEPENDENCE_FACTS = "facts"
    """Lookups in a list of known independence facts."""


class DataKind(Enum, metaclass=MetaEnum):
    """Structural tag of the input a search is run on."""

    DATASET = "dataset"
    """A single tabular dataset with variables as columns."""

    DATASETS = "datasets"
    """Several tabular datasets over the same variables."""

    GRAPH = "graph"
    """A ground-truth DAG queried as an oracle."""

    INDEPENDENCE_FACTS = "facts"
    """A list of independence facts queried as an oracle."""


class SearchKind(Enum, metaclass=MetaEnum):
    """The family of structure search a runner performs."""

    CONSTRAINT_BASED = "constraint_based"


@dataclass(frozen=True)
class SearchParams:
    """Parameters of a constraint-based search.

    Parameters
    ----------
    depth : int
        The maximum size of the conditioning sets tested, by default -1,
        which means the size is unbounded.
    aggressively_prevent_cycles : bool
        Whether to refuse any orientation that would close a directed cycle
        in the graph oriented so far, by default False.
    ind_test_type : IndTestType
        The conditional independence test to use, by default
        ``IndTestType.DEFAULT``.
    alpha : float
        The significance level of the independence tests, by default 0.05.
    max_iter : int
        The maximum number of passes of the orientation rules, by default 1000.
    """

    depth: int = -1
    aggressively_prevent_cycles: bool = False
    ind_test_type: IndTestType = IndTestType.DEFAULT
    alpha: float = 0.05
    max_iter: int = 1000

    def __post_init__(self):
        if self.depth < -1:
            raise ValueError(f"Depth must be -1 (unbounded) or non-negative, not {self.depth}.")
        if not 0 < self.alpha < 1:
            raise ValueError(f"Alpha must be strictly between 0 and 1, not {self.alpha}.")
        if self.max_iter < 1:
            raise ValueError(f"Max iterations must be at least 1, not {self.max_iter}.")
        if not isinstance(self.ind_test_type, IndTestType):
            if self.ind_test_type not in IndTestType:
                raise ValueError(
                    f"Independence test must be one of {[t.value for t in IndTestType]}, "
                    f"not {self.ind_test_type}."
                )
            object.__setattr__(self, "ind_test_type", IndTestType(self.ind_test_type))
