from typing import Dict, FrozenSet, Tuple, Union

import networkx as nx

# Pandas DataFrame columns that are also compatible with Graph nodes
Column = Union[None, int, float, str, Tuple]

# The separating set used in constraint-based causal discovery, keyed by the
# unordered pair of variables that were found to be independent
SeparatingSet = Dict[FrozenSet[Column], FrozenSet[Column]]

NetworkxGraph = Union[nx.Graph, nx.DiGraph]
