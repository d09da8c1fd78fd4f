from . import ci  # noqa: F401
from . import constraint  # noqa: F401
from . import metrics  # noqa: F401
from ._protocol import EquivalenceClass, Graph
from ._version import __version__  # noqa: F401
from .config import DataKind, IndTestType, SearchKind, SearchParams
from .constraint import PC, LearnSkeleton, MeekRules
from .context import Context
from .context_builder import ContextBuilder, make_context
from .edges import Edge, EdgeType
from .exceptions import KnowledgeConflict, SearchAborted, UnsupportedDataKind
from .knowledge import Knowledge
from .runner import SearchRunner
