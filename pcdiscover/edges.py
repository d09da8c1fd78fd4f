from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Dict, FrozenSet, List, Optional, Sequence

from ._protocol import EquivalenceClass
from .typing import Column


class EdgeType(Enum):
    """Orientation tag of an edge between two variables."""

    UNDIRECTED = "undirected"
    DIRECTED = "directed"
    BIDIRECTED = "bidirected"


@dataclass(frozen=True)
class Edge:
    """An edge between two variables.

    For ``EdgeType.DIRECTED``, the edge reads ``u -> v``. Undirected and
    bidirected edges are symmetric, so build them with :meth:`make` to get
    a canonical endpoint order under which equal adjacencies compare equal.

    Parameters
    ----------
    u : Column
        The first endpoint (the tail of a directed edge).
    v : Column
        The second endpoint (the head of a directed edge).
    kind : EdgeType
        The orientation tag.
    """

    u: Column
    v: Column
    kind: EdgeType = EdgeType.UNDIRECTED

    @classmethod
    def make(
        cls,
        u: Column,
        v: Column,
        kind: EdgeType = EdgeType.UNDIRECTED,
        order: Optional[Dict[Column, int]] = None,
    ) -> "Edge":
        """Create an edge, ordering the endpoints of symmetric edges.

        Parameters
        ----------
        u, v : Column
            The endpoints.
        kind : EdgeType
            The orientation tag.
        order : dict, optional
            Position of each variable. Symmetric edges put the endpoint with
            the lower position first. By default the string form of the
            endpoints is compared.
        """
        if kind != EdgeType.DIRECTED:
            if order is not None:
                swap = order[u] > order[v]
            else:
                swap = str(u) > str(v)
            if swap:
                u, v = v, u
        return cls(u, v, kind)

    @property
    def nodes(self) -> FrozenSet[Column]:
        """The unordered pair of endpoints."""
        return frozenset((self.u, self.v))

    def is_directed(self) -> bool:
        return self.kind == EdgeType.DIRECTED

    def __str__(self) -> str:
        arrow = {
            EdgeType.UNDIRECTED: "---",
            EdgeType.DIRECTED: "-->",
            EdgeType.BIDIRECTED: "<->",
        }[self.kind]
        return f"{self.u} {arrow} {self.v}"


def node_order(nodes: Sequence[Column]) -> Dict[Column, int]:
    """Map every node to its position in ``nodes``."""
    return {node: idx for idx, node in enumerate(nodes)}


def edges_from_graph(graph: EquivalenceClass, order: Dict[Column, int]) -> FrozenSet[Edge]:
    """Snapshot the edges of a partially directed graph.

    Parameters
    ----------
    graph : EquivalenceClass
        A graph with directed and undirected edges.
    order : dict
        Position of each node, used to order the endpoints of undirected edges.

    Returns
    -------
    edges : frozenset of Edge
        One edge per adjacency with its orientation.
    """
    edges = [Edge(u, v, EdgeType.DIRECTED) for u, v in graph.directed_edges]
    edges.extend(
        Edge.make(u, v, EdgeType.UNDIRECTED, order=order) for u, v in graph.undirected_edges
    )
    return frozenset(edges)


def nonadjacent_pairs(graph: EquivalenceClass, nodes: List[Column]) -> FrozenSet[Edge]:
    """All pairs of nodes that are not adjacent in ``graph``, as undirected edges."""
    order = node_order(nodes)
    adjacencies = graph.to_undirected()
    return frozenset(
        Edge.make(u, v, EdgeType.UNDIRECTED, order=order)
        for u, v in combinations(nodes, 2)
        if not adjacencies.has_edge(u, v)
    )
