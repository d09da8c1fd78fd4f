"""Node positions for displaying the result of a search.

Positions are plain ``(x, y)`` coordinates keyed by node. They are computed
with the layout functions of networkx.
"""
from typing import Dict, Iterable, Optional, Tuple

import networkx as nx

from .knowledge import Knowledge
from .typing import Column

Layout = Dict[Column, Tuple[float, float]]

CENTER = (200.0, 200.0)
RADIUS = 150.0


def _as_layout(pos) -> Layout:
    return {node: (float(xy[0]), float(xy[1])) for node, xy in pos.items()}


def circle_layout(
    nodes: Iterable[Column], center: Tuple[float, float] = CENTER, radius: float = RADIUS
) -> Layout:
    """Place the nodes evenly on a circle.

    Parameters
    ----------
    nodes : iterable of Column
        The nodes, placed counter-clockwise in this order.
    center : tuple of float
        The center of the circle, by default (200, 200).
    radius : float
        The radius of the circle, by default 150.

    Returns
    -------
    layout : dict
        The position of every node.
    """
    graph = nx.Graph()
    graph.add_nodes_from(nodes)
    if graph.number_of_nodes() == 0:
        return dict()
    if graph.number_of_nodes() == 1:
        return {node: (float(center[0]), float(center[1])) for node in graph.nodes}
    return _as_layout(nx.circular_layout(graph, scale=radius, center=center))


def arrange_by_knowledge_tiers(
    nodes: Iterable[Column],
    knowledge: Knowledge,
    center: Tuple[float, float] = CENTER,
    radius: float = RADIUS,
) -> Layout:
    """Place the nodes in rows, one row per tier of the knowledge.

    Nodes that are not in any tier are placed in a last row.

    Parameters
    ----------
    nodes : iterable of Column
        The nodes.
    knowledge : Knowledge
        The knowledge with the tiers.
    center : tuple of float
        The center of the layout, by default (200, 200).
    radius : float
        The half-extent of the layout, by default 150.

    Returns
    -------
    layout : dict
        The position of every node.
    """
    nodes = list(nodes)
    n_tiers = len(knowledge.tiers)

    graph = nx.Graph()
    for node in nodes:
        tier = knowledge.tier_of(node)
        graph.add_node(node, tier=tier if tier is not None else n_tiers)

    if graph.number_of_nodes() < 2:
        return circle_layout(nodes, center=center, radius=radius)
    return _as_layout(
        nx.multipartite_layout(
            graph, subset_key="tier", align="horizontal", scale=radius, center=center
        )
    )


def arrange_by_source_graph(
    nodes: Iterable[Column],
    source_graph,
    center: Tuple[float, float] = CENTER,
    radius: float = RADIUS,
) -> Layout:
    """Copy the positions of the nodes from the graph the data came from.

    Nodes of the source graph with a ``"pos"`` attribute keep that position.
    Otherwise, the source graph is laid out on a circle. Nodes that are not in
    the source graph are placed on a circle of their own.

    Parameters
    ----------
    nodes : iterable of Column
        The nodes of the result graph.
    source_graph : Graph
        The source graph, for example the DAG a search is run against.
    center : tuple of float
        The center of the layout, by default (200, 200).
    radius : float
        The radius of the circle, by default 150.

    Returns
    -------
    layout : dict
        The position of every node.
    """
    nodes = list(nodes)
    source_pos = dict()
    if isinstance(source_graph, nx.Graph):
        source_pos = nx.get_node_attributes(source_graph, "pos")
    if not source_pos:
        source_pos = circle_layout(source_graph.nodes, center=center, radius=radius)

    layout = {node: tuple(map(float, source_pos[node])) for node in nodes if node in source_pos}
    missing = [node for node in nodes if node not in layout]
    if missing:
        layout.update(circle_layout(missing, center=center, radius=radius))
    return layout


def arrange(
    nodes: Iterable[Column],
    source_graph=None,
    knowledge: Optional[Knowledge] = None,
) -> Layout:
    """Lay out the result of a search.

    The layout follows the source graph when there is one, then the knowledge
    tiers when the knowledge asks for it, and is a circle otherwise.
    """
    if source_graph is not None:
        return arrange_by_source_graph(nodes, source_graph)
    if knowledge is not None and knowledge.default_to_knowledge_layout and knowledge.tiers:
        return arrange_by_knowledge_tiers(nodes, knowledge)
    return circle_layout(nodes)
