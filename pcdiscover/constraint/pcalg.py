import logging
from typing import FrozenSet, Optional, Set, Tuple

import networkx as nx
import pandas as pd

from pcdiscover.ci.base import BaseConditionalIndependenceTest
from pcdiscover.ci.oracle_adapter import IndependenceOracle
from pcdiscover.edges import Edge, edges_from_graph, nonadjacent_pairs
from pcdiscover.typing import Column, SeparatingSet

from .._protocol import EquivalenceClass
from ..context import Context
from ..knowledge import Knowledge
from .meek import MeekRules
from .skeleton import LearnSkeleton

logger = logging.getLogger()


class PC:
    """Peter and Clarke (PC) algorithm for causal discovery.

    Assumes causal sufficiency, that is, all confounders in the
    causal graph are observed variables. See :footcite:`Spirtes1993` for
    full details on the algorithm.

    Parameters
    ----------
    ci_estimator : BaseConditionalIndependenceTest
        The conditional independence test function. It must implement the ``test``
        function which accepts the data, a set of X nodes, a set of Y nodes and an
        optional set of Z nodes, which returns a ordered tuple of test statistic and
        pvalue associated with the null hypothesis :math:`X \\perp Y | Z`.
    alpha : float, optional
        The significance level for the conditional independence test, by default 0.05.
    depth : int, optional
        Maximum size of the conditioning set, by default -1, which means the size
        is unbounded. Used to limit the computation spent on the algorithm.
    aggressively_prevent_cycles : bool
        Whether to refuse any orientation that would close a directed cycle,
        by default False.
    apply_orientations : bool
        Whether or not to apply orientation rules given the learned skeleton graph
        and separating set per pair of variables. If ``True`` (default), will
        apply Meek's orientation rules R0-4, orienting colliders and certain
        arrowheads :footcite:`Meek1995`.
    max_iter : int
        The maximum number of iterations through the graph to apply
        orientation rules.

    Attributes
    ----------
    graph_ : EquivalenceClass
        The equivalence class of graphs discovered.
    separating_sets_ : SeparatingSet
        The separating set of every separated pair of variables.
    adjacencies_ : frozenset of Edge
        The edges of ``graph_`` with their orientation.
    nonadjacencies_ : frozenset of Edge
        The pairs of variables that are not adjacent in ``graph_``.
    orientations_ : list of tuple
        Every orientation applied, as ``(u, v, rule)``.
    n_ci_tests : int
        The number of conditional independence tests run.

    Notes
    -----
    The design of constraint-based causal discovery algorithms proceeds at a high level
    in two stages:

    1. skeleton discovery
    2. orientation of edges

    The skeleton discovery stage is passed off to :class:`LearnSkeleton`, which returns
    an undirected networkx :class:`networkx.Graph` and a `SeparatingSet` data structure.
    The orientation of edges converts the skeleton graph to a CPDAG and applies
    :class:`MeekRules` to it.

    References
    ----------
    .. footbibliography::
    """

    graph_: EquivalenceClass
    separating_sets_: SeparatingSet
    adjacencies_: FrozenSet[Edge]
    nonadjacencies_: FrozenSet[Edge]

    def __init__(
        self,
        ci_estimator: BaseConditionalIndependenceTest,
        alpha: float = 0.05,
        depth: int = -1,
        aggressively_prevent_cycles: bool = False,
        apply_orientations: bool = True,
        max_iter: int = 1000,
    ):
        self.ci_estimator = ci_estimator
        self.alpha = alpha
        self.depth = depth
        self.aggressively_prevent_cycles = aggressively_prevent_cycles
        self.apply_orientations = apply_orientations
        self.max_iter = max_iter

        # debugging mode
        self.n_ci_tests = 0

    def convert_skeleton_graph(self, graph: nx.Graph, variables=None) -> EquivalenceClass:
        """Convert skeleton graph as undirected networkx Graph to CPDAG.

        Parameters
        ----------
        graph : nx.Graph
            Converts a skeleton graph to the representation needed
            for PC algorithm, a CPDAG.
        variables : list, optional
            The nodes in the order the orientation rules visit them. By
            default, the order of the nodes of ``graph``.

        Returns
        -------
        graph : EquivalenceClass
            The CPDAG class.
        """
        from pywhy_graphs import CPDAG

        if variables is None:
            variables = list(graph.nodes)

        # convert Graph object to a CPDAG object with
        # all undirected edges
        cpdag = CPDAG()
        cpdag.add_nodes_from(variables)
        for u, v in graph.edges:
            cpdag.add_edge(u, v, cpdag.undirected_edge_name)
        return cpdag

    def learn_skeleton(
        self,
        data: pd.DataFrame,
        context: Context,
        oracle: Optional[IndependenceOracle] = None,
    ) -> Tuple[nx.Graph, SeparatingSet]:
        """Learns the skeleton of a causal DAG using pairwise (conditional) independence testing.

        Parameters
        ----------
        data : pd.DataFrame
            The dataset.
        context : Context
            A context object.
        oracle : IndependenceOracle, optional
            The independence test bound to ``data``. By default, one is built
            from ``ci_estimator`` and ``alpha``.

        Returns
        -------
        skel_graph : nx.Graph
            The undirected graph of the causal graph's skeleton.
        sep_set : SeparatingSet
            The separating set per pairs of variables.
        """
        skel_alg = LearnSkeleton(
            self.ci_estimator,
            alpha=self.alpha,
            depth=self.depth,
            knowledge=context.knowledge,
        )
        try:
            skel_alg.learn_graph(data, context, oracle=oracle)
        finally:
            self.n_ci_tests += skel_alg.n_ci_tests

        return skel_alg.adj_graph_, skel_alg.sep_set_

    def make_meek_rules(self, knowledge: Optional[Knowledge] = None) -> MeekRules:
        """Create the orientation rules configured like this search."""
        return MeekRules(
            knowledge=knowledge,
            aggressively_prevent_cycles=self.aggressively_prevent_cycles,
            max_iter=self.max_iter,
        )

    def learn_graph(
        self,
        data: pd.DataFrame,
        context: Optional[Context] = None,
        oracle: Optional[IndependenceOracle] = None,
    ) -> "PC":
        """Learn the CPDAG of the causal graph.

        Parameters
        ----------
        data : pd.DataFrame
            The dataset, or an empty DataFrame with the variables as columns
            for oracle tests.
        context : Context, optional
            The context with the variables, the initial graph and the
            knowledge. By default, every column of ``data`` is a variable and
            the initial graph is complete.
        oracle : IndependenceOracle, optional
            The independence test bound to ``data``, shared with the caller.
            By default, one is built from ``ci_estimator`` and ``alpha``.

        Returns
        -------
        self : PC
            The fitted algorithm.

        Raises
        ------
        KnowledgeConflict
            If the knowledge requires an edge it forbids.
        SearchAborted
            If a conditional independence test failed. No result is stored.
        """
        if context is None:
            # make a private Context object to store causal context used in this algorithm
            from pcdiscover.context_builder import make_context

            context = make_context().variables(data=data).build()

        context.knowledge.check_consistency()
        self.n_ci_tests = 0

        # learn skeleton graph and the separating sets per variable
        skel_graph, sep_set = self.learn_skeleton(data, context, oracle=oracle)

        # convert networkx.Graph to relevant causal graph object
        graph = self.convert_skeleton_graph(skel_graph, context.observed_variables)

        meek_rules = self.make_meek_rules(context.knowledge)
        if self.apply_orientations:
            meek_rules.apply(graph, sep_set)

        order = context.variable_order()
        adjacencies = edges_from_graph(graph, order)
        nonadjacencies = nonadjacent_pairs(graph, context.observed_variables)

        # store resulting data structures
        self.graph_ = graph
        self.separating_sets_ = sep_set
        self.orientations_ = meek_rules.orientations_
        self.adjacencies_ = adjacencies
        self.nonadjacencies_ = nonadjacencies
        return self

    def evaluate_edge(
        self,
        data: pd.DataFrame,
        X: Column,
        Y: Column,
        Z: Optional[Set[Column]] = None,
    ) -> Tuple[float, float]:
        """Test any specific edge for X || Y | Z.

        Parameters
        ----------
        data : pd.DataFrame
            The dataset
        X : column
            A column in ``data``.
        Y : column
            A column in ``data``.
        Z : set, optional
            A list of columns in ``data``, by default None.

        Returns
        -------
        test_stat : float
            Test statistic.
        pvalue : float
            The pvalue.
        """
        if Z is None:
            Z = set()
        test_stat, pvalue = self.ci_estimator.test(data, {X}, {Y}, set(Z))
        self.n_ci_tests += 1
        return test_stat, pvalue
