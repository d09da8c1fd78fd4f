import logging
from itertools import combinations
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx
import numpy as np
import pandas as pd

from pcdiscover.ci.base import BaseConditionalIndependenceTest
from pcdiscover.ci.oracle_adapter import IndependenceOracle
from pcdiscover.context import Context
from pcdiscover.knowledge import Knowledge
from pcdiscover.typing import Column, SeparatingSet

logger = logging.getLogger()


class LearnSkeleton:
    """Learn a skeleton graph from observational data without latent confounding.

    A skeleton graph from a Markovian causal model can be learned completely
    with this procedure.

    Parameters
    ----------
    ci_estimator : BaseConditionalIndependenceTest
        The conditional independence test function.
    alpha : float, optional
        The significance level for the conditional independence test, by default 0.05.
    depth : int, optional
        Maximum size of the conditioning set, by default -1, which means the
        size is unbounded. With ``depth=0``, only marginal independences are tested.
    knowledge : Knowledge, optional
        Background knowledge. By default, the knowledge of the context passed to
        :meth:`learn_graph` is used.

    Attributes
    ----------
    adj_graph_ : nx.Graph
        The discovered graph from data. Stored using an undirected
        graph. The graph contains edge attributes for the smallest value of the
        test statistic encountered (key name 'test_stat'), the largest pvalue seen in
        testing 'x' || 'y' given some conditioning set (key name 'pvalue').
    sep_set_ : SeparatingSet
        Mapping of each separated pair of variables to the first conditioning
        set found to make them independent.
    depth_reached_ : int
        The largest conditioning set size that was tested.
    n_ci_tests : int
        The number of conditional independence tests run.

    Notes
    -----
    Proceed by testing neighboring nodes. Remember we are testing the null hypothesis

    .. math::
        H_0: X \\perp Y | Z

    where the alternative hypothesis is that they are dependent and hence
    require a causal edge linking the two variables.

    The algorithm consists of four loops:

    1. Loop through the size of the conditioning set, 'size_cond_set', from 0 up
       to ``depth``.
    2. Loop through the variables, 'x_var', in the order of the context's
       observed variables.
    3. Loop through the variables adjacent to 'x_var', 'y_var', in the same order.
    4. Loop through the combinations of size 'size_cond_set' of the other
       variables adjacent to 'x_var'. The first combination that makes 'x_var'
       and 'y_var' independent is their separating set.

    The adjacencies used within one size of the conditioning set are those at
    the start of that size. Edges found independent are only removed at the
    end of it, which makes the result independent of the order of the
    variables :footcite:`Colombo2012`. Edges required by the background
    knowledge are never tested, and edges forbidden in both directions are
    removed before any test. They get no separating set, since no test
    separated them.

    The stopping condition is when no remaining (X, Y) pair has at least
    'size_cond_set' other variables adjacent to X, or when ``depth`` is reached.

    References
    ----------
    .. footbibliography::
    """

    adj_graph_: nx.Graph
    sep_set_: SeparatingSet
    depth_reached_: int

    # stopping condition
    _cont: bool

    n_ci_tests: int = 0

    def __init__(
        self,
        ci_estimator: BaseConditionalIndependenceTest,
        alpha: float = 0.05,
        depth: int = -1,
        knowledge: Optional[Knowledge] = None,
    ) -> None:
        self.ci_estimator = ci_estimator
        self.alpha = alpha
        self.depth = depth
        self.knowledge = knowledge

        # debugging mode
        self.n_ci_tests = 0

    def _initialize_graph(self, context: Context) -> nx.Graph:
        """Copy the initial graph of the context as an undirected graph over the variables."""
        variables = context.observed_variables
        init_graph = context.init_graph.to_undirected()

        adj_graph = nx.Graph()
        adj_graph.add_nodes_from(variables)
        adj_graph.add_edges_from(
            (u, v)
            for u, v in init_graph.edges
            if u != v and adj_graph.has_node(u) and adj_graph.has_node(v)
        )

        # store the test-statistic values and pvalue for every remaining edge
        nx.set_edge_attributes(adj_graph, np.inf, "test_stat")
        nx.set_edge_attributes(adj_graph, -1e-5, "pvalue")
        return adj_graph

    def _remove_forbidden_edges(
        self,
        adj_graph: nx.Graph,
        knowledge: Knowledge,
        variables: List[Column],
    ) -> None:
        """Remove the edges forbidden in both directions before any test.

        No separating set is recorded for these pairs, so they never orient
        a collider.
        """
        for x_var, y_var in combinations(variables, 2):
            if adj_graph.has_edge(x_var, y_var) and knowledge.is_forbidden_edge(x_var, y_var):
                logger.info(f"Removing edge between {x_var} and {y_var} forbidden by knowledge.")
                adj_graph.remove_edge(x_var, y_var)

    def _learn_skeleton(
        self,
        adj_graph: nx.Graph,
        sep_set: SeparatingSet,
        oracle: IndependenceOracle,
        variables: List[Column],
        knowledge: Knowledge,
    ) -> None:
        """Core loop of the skeleton search, modifying ``adj_graph`` in place."""
        order = {node: idx for idx, node in enumerate(variables)}
        size_cond_set = 0

        while self.depth < 0 or size_cond_set <= self.depth:
            # private attribute '_cont' is used to determine a breaking
            # condition for the constraint-based search algorithm
            self._cont = False

            # snapshot of the adjacencies, kept fixed for this size of conditioning set
            adjacencies: Dict[Column, List[Column]] = {
                x_var: sorted(adj_graph.neighbors(x_var), key=order.__getitem__)
                for x_var in variables
            }

            # edges to remove at the end of this size of conditioning set
            remove_edges: List[Tuple[Column, Column]] = []
            separated: Set[frozenset] = set()

            for x_var in variables:
                for y_var in adjacencies[x_var]:
                    pair = frozenset((x_var, y_var))
                    if pair in separated:
                        continue
                    if knowledge.is_required_edge(x_var, y_var):
                        continue

                    possible_variables = [node for node in adjacencies[x_var] if node != y_var]

                    # check that number of adjacencies is greater then the
                    # cardinality of the conditioning set
                    if len(possible_variables) < size_cond_set:
                        continue
                    self._cont = True

                    removed_edge = False
                    pvalue = np.nan
                    for cond_set in combinations(possible_variables, size_cond_set):
                        result = oracle.test(x_var, y_var, cond_set)
                        pvalue = result.pvalue
                        self._postprocess_ci_test(
                            adj_graph, x_var, y_var, result.statistic, result.pvalue
                        )

                        if result.independent:
                            # only the first separating set found is kept
                            sep_set.setdefault(pair, frozenset(cond_set))
                            separated.add(pair)
                            remove_edges.append((x_var, y_var))
                            removed_edge = True
                            break

                    self._summarize_xy_comparison(x_var, y_var, removed_edge, pvalue)

            logger.info(f"For p = {size_cond_set}, removing all edges: {remove_edges}")
            adj_graph.remove_edges_from(remove_edges)

            if self._cont is False:
                break
            self.depth_reached_ = size_cond_set
            size_cond_set += 1

    def _postprocess_ci_test(
        self,
        adj_graph: nx.Graph,
        x_var: Column,
        y_var: Column,
        test_stat: float,
        pvalue: float,
    ):
        """Post-processing of CI tests.

        The basic values any learner keeps track of is the pvalue/test-statistic of each
        remaining edge. This is a heuristic estimate of the "dependency" of any node
        with its neighbors.

        Parameters
        ----------
        adj_graph : nx.Graph
            The adjacency graph, which we will modify in place.
        x_var : Column
            X variable.
        y_var : Column
            Y variable.
        test_stat : float
            The test statistic.
        pvalue : float
            The pvalue of the test statistic.
        """
        # keep track of the smallest test statistic, meaning the highest pvalue
        # meaning the "most" independent. keep track of the maximum pvalue as well
        if pvalue > adj_graph.edges[x_var, y_var]["pvalue"]:
            adj_graph.edges[x_var, y_var]["pvalue"] = pvalue
        if test_stat < adj_graph.edges[x_var, y_var]["test_stat"]:
            adj_graph.edges[x_var, y_var]["test_stat"] = test_stat

    def _summarize_xy_comparison(
        self, x_var: Column, y_var: Column, removed_edge: bool, pvalue: float
    ) -> None:
        """Provide ability to log end result of each XY edge evaluation."""
        if removed_edge:
            remove_edge_str = "Removing edge"
        else:
            remove_edge_str = "Did not remove edge"

        logger.debug(
            f"{remove_edge_str} between {x_var} and {y_var}... \n"
            f"Statistical summary:\n"
            f"- PValue={pvalue} at alpha={self.alpha}"
        )

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

    def learn_graph(
        self,
        data: pd.DataFrame,
        context: Optional[Context] = None,
        oracle: Optional[IndependenceOracle] = None,
    ) -> None:
        """Learn the skeleton of the causal graph.

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
            The independence test bound to ``data``, for example one shared
            with the caller. By default, ``ci_estimator`` is bound to ``data``
            with ``alpha``. Only the tests of this search are added to
            ``n_ci_tests``.

        Raises
        ------
        SearchAborted
            If a conditional independence test failed. No result is stored.
        """
        if context is None:
            from pcdiscover.context_builder import make_context

            context = make_context().variables(data=data).build()

        knowledge = self.knowledge if self.knowledge is not None else context.knowledge
        variables = list(context.observed_variables)
        if oracle is None:
            oracle = IndependenceOracle(self.ci_estimator, data, alpha=self.alpha)
        n_ci_tests_before = oracle.n_ci_tests

        sep_set: SeparatingSet = dict()
        self.depth_reached_ = -1
        adj_graph = self._initialize_graph(context)
        self._remove_forbidden_edges(adj_graph, knowledge, variables)

        try:
            self._learn_skeleton(adj_graph, sep_set, oracle, variables, knowledge)
        finally:
            n_ci_tests = oracle.n_ci_tests - n_ci_tests_before
            self.n_ci_tests += n_ci_tests

        logger.info(
            f"Finished learning the skeleton up to p = {self.depth_reached_} with "
            f"{adj_graph.number_of_edges()} edges and {n_ci_tests} CI tests."
        )
        self.adj_graph_ = adj_graph
        self.sep_set_ = sep_set
