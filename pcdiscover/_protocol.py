from typing import Iterable, Protocol

import networkx as nx


class Graph(Protocol):
    """Protocol for graphs to work with pcdiscover algorithms."""

    @property
    def nodes(self) -> Iterable:
        """Return an iterable over nodes in graph."""
        pass

    def has_edge(self, u, v, edge_type="any") -> bool:
        """Check if graph has an edge for a specific edge type."""
        pass

    def neighbors(self, node) -> Iterable:
        """Iterate over all nodes that have any edge connection with 'node'."""
        pass

    def to_undirected(self) -> nx.Graph:
        """Convert a graph to a fully undirected networkx graph.

        All nodes are connected by an undirected edge if there are any
        edges between the two.
        """
        pass

    def copy(self):
        """Create a copy of the graph."""
        pass


class EquivalenceClass(Graph, Protocol):
    """Protocol for a partially directed graph of an equivalence class."""

    @property
    def directed_edge_name(self) -> str:
        """Name of the directed edges."""
        pass

    @property
    def undirected_edge_name(self) -> str:
        """Name of the undirected edges."""
        pass

    @property
    def directed_edges(self) -> Iterable:
        """View of the directed edges."""
        pass

    @property
    def undirected_edges(self) -> Iterable:
        """View of the undirected edges."""
        pass

    def orient_uncertain_edge(self, u, v) -> None:
        """Orients an undirected edge ``'u' - 'v'`` to directed ``'u' -> 'v'``."""
        pass

    def sub_directed_graph(self) -> nx.DiGraph:
        """The subgraph of directed edges."""
        pass

    def sub_undirected_graph(self) -> nx.Graph:
        """The subgraph of undirected edges."""
        pass
