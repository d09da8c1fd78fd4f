from typing import Dict, FrozenSet, Optional, Tuple

import networkx as nx
import numpy as np
from numpy.typing import NDArray
from sklearn.metrics import confusion_matrix

from ._protocol import Graph
from .typing import Column


def _node_order(graph: Graph):
    return sorted(graph.nodes, key=str)


def confusion_matrix_networks(
    true_graph: Graph,
    pred_graph: Graph,
    labels: Optional[NDArray] = None,
    normalize: Optional[str] = None,
):
    """Compute the confusion matrix comparing a predicted graph from the true graph.

    Converts the graphs into an undirected graph, and then compares their adjacency
    matrix, which are symmetric.

    Parameters
    ----------
    true_graph : instance of causal graph
        The true graph.
    pred_graph : instance of causal graph
        The predicted graph, for example the CPDAG found by a search.
    labels : array-like of shape (n_classes), default=None
        List of labels to index the matrix, among ``0`` (not adjacent) and
        ``1`` (adjacent). This may be used to reorder or select a subset of labels.
        If ``None`` is given, ``[0, 1]`` is used.
    normalize : {'true', 'pred', 'all'}, default=None
        Normalizes confusion matrix over the true (rows), predicted (columns)
        conditions or all the population. If None, confusion matrix will not be
        normalized.

    Returns
    -------
    cm : np.ndarray of shape (2, 2)
        The confusion matrix.

    See Also
    --------
    sklearn.metrics.confusion_matrix

    Notes
    -----
    This function only compares the graph's adjacency structure, which does
    not take into consideration the directionality of edges.
    """
    if set(true_graph.nodes) != set(pred_graph.nodes):
        raise RuntimeError("Both nodes should match.")
    if labels is None:
        labels = [0, 1]

    # convert graphs to undirected graph in networkx, with the same node order
    nodes = _node_order(true_graph)
    true_adj_mat = nx.to_numpy_array(true_graph.to_undirected(), nodelist=nodes)
    pred_adj_mat = nx.to_numpy_array(pred_graph.to_undirected(), nodelist=nodes)

    # then only extract lower-triangular portion
    y_true = (true_adj_mat[np.tril_indices_from(true_adj_mat, k=-1)] > 0).astype(int)
    y_pred = (pred_adj_mat[np.tril_indices_from(pred_adj_mat, k=-1)] > 0).astype(int)

    # compute the confusion matrix
    conf_mat = confusion_matrix(y_true, y_pred, labels=labels, normalize=normalize)
    return conf_mat


def _edge_marks(graph) -> Dict[FrozenSet[Column], Tuple[Column, ...]]:
    """Map every adjacent pair to its orientation.

    A directed edge 'u -> v' maps to ``(u, v)`` and an undirected edge to an
    empty tuple.
    """
    marks: Dict[FrozenSet[Column], Tuple[Column, ...]] = dict()
    if isinstance(graph, nx.DiGraph):
        directed_edges, undirected_edges = graph.edges, []
    elif isinstance(graph, nx.Graph):
        directed_edges, undirected_edges = [], graph.edges
    else:
        directed_edges, undirected_edges = graph.directed_edges, graph.undirected_edges

    for u, v in undirected_edges:
        marks[frozenset((u, v))] = ()
    for u, v in directed_edges:
        pair = frozenset((u, v))
        # both directions count as one bidirected mark
        if pair in marks and marks[pair] == (v, u):
            marks[pair] = (u, v, "bidirected")
        else:
            marks[pair] = (u, v)
    return marks


def structure_hamming_dist(true_graph, pred_graph, double_for_anticausal: bool = True) -> float:
    """Compute structural hamming distance.

    The Structural Hamming Distance (SHD) counts the pairs of variables whose
    edge differs between the two graphs: an edge that is missing or extra is
    one mistake, and an edge with a different orientation is one mistake, or
    two mistakes if ``double_for_anticausal`` and the edges point in opposite
    directions.

    Parameters
    ----------
    true_graph : nx.DiGraph, nx.Graph or CPDAG
        The true graph, for example the DAG or its CPDAG.
    pred_graph : nx.DiGraph, nx.Graph or CPDAG
        The predicted graph, for example the CPDAG found by a search.
    double_for_anticausal : bool, optional
        Whether to count reversed edges as two mistakes, by default True.

    Returns
    -------
    shd : float
        The hamming distance between 0 and infinity.

    Notes
    -----
    Comparing a CPDAG to the DAG it came from counts every undirected edge of
    the CPDAG as a mistake. Compare it to the CPDAG of the DAG instead, to only
    count the mistakes in the identifiable orientations.
    """
    if set(true_graph.nodes) != set(pred_graph.nodes):
        raise RuntimeError("Both nodes should match.")

    true_marks = _edge_marks(true_graph)
    pred_marks = _edge_marks(pred_graph)

    shd = 0.0
    for pair in set(true_marks).union(pred_marks):
        true_mark = true_marks.get(pair)
        pred_mark = pred_marks.get(pair)
        if true_mark == pred_mark:
            continue
        reversed_edge = (
            true_mark is not None
            and pred_mark is not None
            and len(true_mark) == 2
            and pred_mark == true_mark[::-1]
        )
        if reversed_edge and double_for_anticausal:
            shd += 2
        else:
            shd += 1
    return shd
