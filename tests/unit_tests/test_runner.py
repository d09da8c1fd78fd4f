import networkx as nx
import numpy as np
import pandas as pd
import pytest

from pcdiscover import (
    DataKind,
    IndTestType,
    Knowledge,
    KnowledgeConflict,
    SearchAborted,
    SearchKind,
    SearchParams,
    SearchRunner,
    UnsupportedDataKind,
)
from pcdiscover.ci import IndependenceFacts, IndTestChooser
from pcdiscover.ci.base import BaseConditionalIndependenceTest
from pcdiscover.edges import Edge, EdgeType

seed = 12345


class FailingTest(BaseConditionalIndependenceTest):
    def test(self, df, x_vars, y_vars, z_covariates=None):
        raise np.linalg.LinAlgError("Singular matrix")


def collider_dag():
    return nx.DiGraph([("A", "C"), ("B", "C"), ("C", "D")])


def collider_facts():
    facts = IndependenceFacts(variables=["A", "B", "C", "D"])
    facts.add("A", "B")
    facts.add("A", "D", ["C"])
    facts.add("B", "D", ["C"])
    facts.add("A", "D", ["B", "C"])
    facts.add("B", "D", ["A", "C"])
    return facts


def gaussian_df(n_samples=2000, shift=0.0, rng=None):
    # A -> C <- B, C -> D
    if rng is None:
        rng = np.random.RandomState(seed)
    A = rng.randn(n_samples)
    B = rng.randn(n_samples)
    C = 1.5 * A + 1.5 * B + rng.randn(n_samples)
    D = 1.5 * C + rng.randn(n_samples)
    return pd.DataFrame({"A": A, "B": B, "C": C, "D": D}) + shift


EXPECTED_ADJACENCIES = frozenset(
    [
        Edge("A", "C", EdgeType.DIRECTED),
        Edge("B", "C", EdgeType.DIRECTED),
        Edge("C", "D", EdgeType.DIRECTED),
    ]
)
EXPECTED_NONADJACENCIES = frozenset([Edge("A", "B"), Edge("A", "D"), Edge("B", "D")])


@pytest.mark.parametrize(
    "runner",
    [
        SearchRunner.from_graph(collider_dag()),
        SearchRunner.from_facts(collider_facts()),
        SearchRunner.from_dataset(gaussian_df(), params=SearchParams(alpha=0.01)),
    ],
)
def test_collider_is_recovered(runner):
    graph = runner.execute()

    assert set(graph.directed_edges) == {("A", "C"), ("B", "C"), ("C", "D")}
    assert set(runner.graph.directed_edges) == set(graph.directed_edges)
    assert runner.get_adjacencies() == EXPECTED_ADJACENCIES
    assert runner.get_nonadjacencies() == EXPECTED_NONADJACENCIES
    assert runner.separating_sets_[frozenset(("A", "B"))] == frozenset()
    assert runner.n_ci_tests > 0
    assert set(runner.layout_) == {"A", "B", "C", "D"}


def test_from_datasets():
    rng = np.random.RandomState(seed)
    datasets = [gaussian_df(1500, shift=1.0, rng=rng), gaussian_df(1500, shift=-3.0, rng=rng)]
    runner = SearchRunner.from_datasets(datasets, params=SearchParams(alpha=0.01))
    runner.execute()

    assert runner.data_kind == DataKind.DATASETS
    assert runner.get_adjacencies() == EXPECTED_ADJACENCIES


def test_depth_bounds_conditioning_sets():
    runner = SearchRunner.from_graph(collider_dag(), params=SearchParams(depth=0))
    runner.execute()

    # 'A' and 'D' are only separated by 'C'
    assert Edge("A", "D") not in runner.get_nonadjacencies()
    assert frozenset(("A", "B")) in runner.separating_sets_


def test_knowledge_is_respected():
    dag = nx.DiGraph([("x", "y"), ("y", "z")])
    knowledge = Knowledge(required_edges=[("z", "y")], forbidden_edges=[("y", "x")])
    runner = SearchRunner.from_graph(dag, knowledge=knowledge)
    graph = runner.execute()

    assert set(graph.directed_edges) == {("z", "y"), ("x", "y")}
    assert runner.supports_knowledge()


def test_conflicting_knowledge():
    knowledge = Knowledge(required_edges=[("A", "C"), ("C", "A")])
    runner = SearchRunner.from_graph(collider_dag(), knowledge=knowledge)
    with pytest.raises(KnowledgeConflict, match="both directions"):
        runner.execute()
    assert runner.graph_ is None


def test_unsupported_data_kind():
    runner = SearchRunner.from_graph(
        collider_dag(), params=SearchParams(ind_test_type=IndTestType.FISHER_Z)
    )
    with pytest.raises(UnsupportedDataKind):
        runner.execute()


def test_failed_search_clears_results():
    df = gaussian_df(100)
    failing = IndTestChooser(
        {(DataKind.DATASET, IndTestType.FISHER_Z): lambda data: (FailingTest(), data)}
    )
    runner = SearchRunner.from_dataset(df)

    with pytest.raises(RuntimeError, match="has not been executed yet"):
        runner.get_adjacencies()

    runner.execute()
    assert runner.graph_ is not None

    # a later failed search does not leave the previous result behind
    runner.chooser = failing
    runner.params = SearchParams(ind_test_type=IndTestType.FISHER_Z)
    runner._independence_test = None
    with pytest.raises(SearchAborted, match="Singular matrix"):
        runner.execute()

    assert runner.graph_ is None
    assert runner.layout_ is None
    assert runner.separating_sets_ is None
    with pytest.raises(RuntimeError, match="has not been executed yet"):
        runner.get_nonadjacencies()
    with pytest.raises(RuntimeError):
        runner.graph


def test_initial_graph_is_not_modified():
    init_graph = nx.Graph([("A", "C"), ("B", "C"), ("C", "D"), ("A", "D")])
    runner = SearchRunner.from_graph(collider_dag(), initial_graph=init_graph)
    graph = runner.execute()

    assert {edge.nodes for edge in runner.get_adjacencies()} == {
        frozenset(("A", "C")),
        frozenset(("B", "C")),
        frozenset(("C", "D")),
    }
    assert init_graph.number_of_edges() == 4
    # 'A' and 'B' were never adjacent, so no separating set is recorded for them
    # and the collider at 'C' cannot be oriented
    assert frozenset(("A", "B")) not in runner.separating_sets_
    assert len(graph.directed_edges) == 0


def test_layout_follows_source_graph():
    dag = collider_dag()
    pos = {"A": (0, 0), "B": (100, 0), "C": (50, 50), "D": (50, 100)}
    nx.set_node_attributes(dag, pos, "pos")
    runner = SearchRunner.from_graph(dag)
    runner.execute()

    assert runner.layout_ == {node: (float(x), float(y)) for node, (x, y) in pos.items()}


def test_layout_follows_knowledge_tiers():
    knowledge = Knowledge(tiers=[["A", "B"], ["C"], ["D"]], default_to_knowledge_layout=True)
    runner = SearchRunner.from_facts(collider_facts(), knowledge=knowledge)
    runner.execute()

    layout = runner.layout_
    assert layout["A"][1] == layout["B"][1]
    assert len({layout["A"][1], layout["C"][1], layout["D"][1]}) == 3


def test_layout_defaults_to_circle():
    runner = SearchRunner.from_facts(collider_facts())
    runner.execute()

    center = np.array([200.0, 200.0])
    radii = [np.linalg.norm(np.array(pos) - center) for pos in runner.layout_.values()]
    np.testing.assert_allclose(radii, 150.0)


def test_runner_settings():
    runner = SearchRunner.from_graph(collider_dag(), params=SearchParams(depth=2, alpha=0.01))
    assert runner.algorithm_kind == SearchKind.CONSTRAINT_BASED

    settings = runner.param_settings()
    assert settings["Test"] == "Oracle"
    assert settings["depth"] == 2
    assert settings["alpha"] == 0.01
    assert settings["aggressively_prevent_cycles"] is False


def test_meek_rules_leave_the_result_unchanged():
    runner = SearchRunner.from_graph(collider_dag())
    graph = runner.execute().copy()

    rules = runner.get_meek_rules()
    assert not rules.orient(graph)
    assert set(graph.directed_edges) == {("A", "C"), ("B", "C"), ("C", "D")}


def test_result_graph_is_a_copy():
    runner = SearchRunner.from_graph(collider_dag())
    graph = runner.execute()
    graph.remove_edge("C", "D", graph.directed_edge_name)
    runner.graph_.remove_edge("A", "C", graph.directed_edge_name)

    stored = runner.graph
    assert runner.graph is not stored
    assert set(stored.directed_edges) == {("A", "C"), ("B", "C"), ("C", "D")}
    assert Edge("C", "D", EdgeType.DIRECTED) in runner.get_adjacencies()


def test_independence_test_counts_every_search():
    runner = SearchRunner.from_graph(collider_dag())
    runner.execute()
    n_ci_tests = runner.n_ci_tests
    assert n_ci_tests > 0
    assert runner.get_independence_test().n_ci_tests == n_ci_tests

    # each search reports its own tests, the shared test counts all of them
    runner.execute()
    assert runner.n_ci_tests == n_ci_tests
    assert runner.get_independence_test().n_ci_tests == 2 * n_ci_tests
