from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, List

from ._protocol import Graph
from .base import BasePCDiscover
from .edges import node_order
from .knowledge import Knowledge
from .typing import Column


@dataclass(eq=True)
class Context(BasePCDiscover):
    """Context of assumptions, domain knowledge and data.

    This should NOT be instantiated directly. One should instead
    use `pcdiscover.make_context` to build a Context data structure.

    Parameters
    ----------
    observed_variables : list
        The observed variables, in the order that every search enumerates
        them. When built from data, this is the order of the columns.
    init_graph : Graph
        The graph to start with. Only pairs adjacent in this graph are tested.
        The complete graph over the variables unless an initial graph is given.
    knowledge : Knowledge
        Background knowledge about forbidden and required edges and tiers.

    Notes
    -----
    Testing for equality is done on all attributes that are not graphs.
    Defining equality among graphs is ill-defined, and as such, we
    leave testing of the internal graphs to users.
    """

    observed_variables: List[Column]
    init_graph: Graph = field(compare=False)
    knowledge: Knowledge = field(default_factory=Knowledge, compare=False)

    def variable_order(self) -> Dict[Column, int]:
        """Position of every observed variable."""
        return node_order(self.observed_variables)

    def copy(self) -> "Context":
        """Create a deepcopy of the context."""
        params = self.get_params(deep=False)
        return Context(**{key: deepcopy(value) for key, value in params.items()})
