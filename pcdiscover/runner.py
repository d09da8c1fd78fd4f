import logging
from typing import Dict, FrozenSet, List, Optional

import networkx as nx
import pandas as pd

from ._protocol import EquivalenceClass, Graph
from .ci.chooser import IndTestChooser
from .ci.facts import IndependenceFacts
from .ci.oracle_adapter import IndependenceOracle
from .config import DataKind, SearchKind, SearchParams
from .constraint.meek import MeekRules
from .constraint.pcalg import PC
from .context_builder import make_context
from .edges import Edge
from .knowledge import Knowledge
from .layout import Layout, arrange

logger = logging.getLogger()


class SearchRunner:
    """Run a PC search on data, a known graph or independence facts.

    This should NOT be instantiated directly. One should instead use one of
    the constructors :meth:`from_dataset`, :meth:`from_datasets`,
    :meth:`from_graph` or :meth:`from_facts`, which record the kind of input
    the search runs on.

    Parameters
    ----------
    source : object
        The input of the search.
    data_kind : DataKind
        The kind of ``source``.
    params : SearchParams, optional
        The search parameters. By default ``SearchParams()``.
    knowledge : Knowledge, optional
        The background knowledge, by default no knowledge.
    initial_graph : Graph, optional
        A graph whose adjacencies restrict the pairs of variables that are
        tested. By default, the complete graph. It is never modified.
    source_graph : Graph, optional
        The graph the data came from, used to lay out the result.
    chooser : IndTestChooser, optional
        The table of independence tests, by default ``IndTestChooser()``.

    Attributes
    ----------
    graph_ : EquivalenceClass
        A copy of the CPDAG found by the last successful call to
        :meth:`execute`. Edits to it do not change the stored result.
    layout_ : dict
        The position of every node of ``graph_``.
    adjacencies_ : frozenset of Edge
        The edges of ``graph_`` with their orientation.
    nonadjacencies_ : frozenset of Edge
        The pairs of variables that are not adjacent in ``graph_``.
    separating_sets_ : SeparatingSet
        The separating sets found by the search.
    n_ci_tests : int
        The number of conditional independence tests of the last search. The
        test returned by :meth:`get_independence_test` counts the tests of
        every search run by this runner.

    Examples
    --------
    >>> import networkx as nx
    >>> dag = nx.DiGraph([("A", "C"), ("B", "C"), ("C", "D")])
    >>> runner = SearchRunner.from_graph(dag)
    >>> graph = runner.execute()
    >>> sorted(graph.directed_edges)
    [('A', 'C'), ('B', 'C'), ('C', 'D')]
    """

    #: the family of search this runner performs
    algorithm_kind: SearchKind = SearchKind.CONSTRAINT_BASED

    _graph: Optional[EquivalenceClass]
    layout_: Optional[Layout]
    adjacencies_: Optional[FrozenSet[Edge]]
    nonadjacencies_: Optional[FrozenSet[Edge]]

    def __init__(
        self,
        source,
        data_kind: DataKind,
        params: Optional[SearchParams] = None,
        knowledge: Optional[Knowledge] = None,
        initial_graph: Optional[Graph] = None,
        source_graph: Optional[Graph] = None,
        chooser: Optional[IndTestChooser] = None,
    ) -> None:
        if params is None:
            params = SearchParams()
        if knowledge is None:
            knowledge = Knowledge()
        if chooser is None:
            chooser = IndTestChooser()

        self.source = source
        self.data_kind = data_kind
        self.params = params
        self.knowledge = knowledge
        self.initial_graph = initial_graph
        self.source_graph = source_graph
        self.chooser = chooser

        self._independence_test: Optional[IndependenceOracle] = None
        self._clear_results()

    @classmethod
    def from_dataset(cls, data: pd.DataFrame, **kwargs) -> "SearchRunner":
        """Search over the columns of one dataset."""
        return cls(data, DataKind.DATASET, **kwargs)

    @classmethod
    def from_datasets(cls, datasets: List[pd.DataFrame], **kwargs) -> "SearchRunner":
        """Search over several datasets with the same columns, pooled together."""
        return cls(list(datasets), DataKind.DATASETS, **kwargs)

    @classmethod
    def from_graph(cls, graph: nx.DiGraph, **kwargs) -> "SearchRunner":
        """Search with d-separation in a known DAG as the independence test.

        The DAG is also the source graph of the layout, unless another one
        is given.
        """
        kwargs.setdefault("source_graph", graph)
        return cls(graph, DataKind.GRAPH, **kwargs)

    @classmethod
    def from_facts(cls, facts: IndependenceFacts, **kwargs) -> "SearchRunner":
        """Search with a list of independence facts as the independence test."""
        return cls(facts, DataKind.INDEPENDENCE_FACTS, **kwargs)

    def _clear_results(self) -> None:
        self._graph = None
        self.layout_ = None
        self.adjacencies_ = None
        self.nonadjacencies_ = None
        self.separating_sets_ = None
        self.n_ci_tests = 0

    def _check_is_executed(self) -> None:
        if self._graph is None:
            raise RuntimeError("The search has not been executed yet. Call 'execute()' first.")

    def get_independence_test(self) -> IndependenceOracle:
        """The independence test of the search, bound to its data.

        The same test is used by every call to :meth:`execute`, so its
        ``n_ci_tests`` is the total over all searches.

        Raises
        ------
        UnsupportedDataKind
            If no test is available for the kind of input and the test type.
        """
        if self._independence_test is None:
            self._independence_test = self.chooser.get_test(
                self.source, self.data_kind, self.params
            )
        return self._independence_test

    def get_meek_rules(self) -> MeekRules:
        """Orientation rules configured like the search, for re-orienting edited graphs."""
        return MeekRules(
            knowledge=self.knowledge,
            aggressively_prevent_cycles=self.params.aggressively_prevent_cycles,
            max_iter=self.params.max_iter,
        )

    def execute(self) -> EquivalenceClass:
        """Run the search.

        Returns
        -------
        graph : EquivalenceClass
            A copy of the CPDAG found.

        Raises
        ------
        UnsupportedDataKind
            If no test is available for the kind of input and the test type.
        KnowledgeConflict
            If the knowledge requires an edge it forbids.
        SearchAborted
            If an independence test failed. All previous results are cleared.
        """
        self._clear_results()
        try:
            self.knowledge.check_consistency()
            independence_test = self.get_independence_test()

            context = (
                make_context()
                .variables(observed=independence_test.variables)
                .init_graph(self.initial_graph)
                .knowledge(self.knowledge)
                .build()
            )

            logger.info(
                f"Running PC on {len(context.observed_variables)} variables with "
                f"{independence_test} and {self.params}."
            )
            search = PC(
                independence_test.ci_estimator,
                alpha=self.params.alpha,
                depth=self.params.depth,
                aggressively_prevent_cycles=self.params.aggressively_prevent_cycles,
                max_iter=self.params.max_iter,
            )
            search.learn_graph(independence_test.data, context, oracle=independence_test)

            layout = arrange(
                context.observed_variables, source_graph=self.source_graph, knowledge=self.knowledge
            )
        except Exception:
            self._clear_results()
            raise

        self._graph = search.graph_
        self.layout_ = layout
        self.adjacencies_ = search.adjacencies_
        self.nonadjacencies_ = search.nonadjacencies_
        self.separating_sets_ = search.separating_sets_
        self.n_ci_tests = search.n_ci_tests
        return self._graph.copy()

    @property
    def graph_(self) -> Optional[EquivalenceClass]:
        """A copy of the CPDAG of the last successful search, or None."""
        if self._graph is None:
            return None
        return self._graph.copy()

    @property
    def graph(self) -> EquivalenceClass:
        """A copy of the result of the last successful search."""
        self._check_is_executed()
        return self._graph.copy()  # type: ignore

    def get_adjacencies(self) -> FrozenSet[Edge]:
        """The edges of the result graph with their orientation."""
        self._check_is_executed()
        return self.adjacencies_  # type: ignore

    def get_nonadjacencies(self) -> FrozenSet[Edge]:
        """The pairs of variables that are not adjacent in the result graph."""
        self._check_is_executed()
        return self.nonadjacencies_  # type: ignore

    def supports_knowledge(self) -> bool:
        return True

    def param_settings(self) -> Dict[str, object]:
        """A summary of the settings of the search, for display."""
        return {
            "Test": str(self.get_independence_test()),
            "depth": self.params.depth,
            "alpha": self.params.alpha,
            "aggressively_prevent_cycles": self.params.aggressively_prevent_cycles,
        }
