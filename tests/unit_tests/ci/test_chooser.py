import networkx as nx
import numpy as np
import pandas as pd
import pytest

from pcdiscover import DataKind, IndTestType, SearchParams, UnsupportedDataKind
from pcdiscover.ci import (
    FisherZCITest,
    GSquareCITest,
    IndependenceFacts,
    IndependenceFactsOracle,
    IndTestChooser,
    Oracle,
    make_ci_estimator,
)
from pcdiscover.ci.base import BaseConditionalIndependenceTest

seed = 12345


def continuous_df(n_samples=100, shift=0.0):
    rng = np.random.RandomState(seed)
    return pd.DataFrame(rng.randn(n_samples, 3) + shift, columns=["a", "b", "c"])


def discrete_df():
    rng = np.random.RandomState(seed)
    return pd.DataFrame(rng.randint(0, 2, size=(100, 3)), columns=["a", "b", "c"])


@pytest.mark.parametrize(
    ("source", "data_kind", "ind_test_type", "expected"),
    [
        (continuous_df(), DataKind.DATASET, IndTestType.DEFAULT, FisherZCITest),
        (discrete_df(), DataKind.DATASET, IndTestType.DEFAULT, GSquareCITest),
        (continuous_df(), DataKind.DATASET, IndTestType.FISHER_Z, FisherZCITest),
        (discrete_df(), DataKind.DATASET, IndTestType.G_SQUARE, GSquareCITest),
        ([continuous_df(), continuous_df()], DataKind.DATASETS, IndTestType.DEFAULT, FisherZCITest),
        ([discrete_df(), discrete_df()], DataKind.DATASETS, IndTestType.G_SQUARE, GSquareCITest),
        (nx.DiGraph([("a", "b")]), DataKind.GRAPH, IndTestType.DEFAULT, Oracle),
        (nx.DiGraph([("a", "b")]), DataKind.GRAPH, IndTestType.D_SEPARATION, Oracle),
        (
            IndependenceFacts([("a", "b", [])]),
            DataKind.INDEPENDENCE_FACTS,
            IndTestType.INDEPENDENCE_FACTS,
            IndependenceFactsOracle,
        ),
        (
            IndependenceFacts([("a", "b", [])]),
            DataKind.INDEPENDENCE_FACTS,
            IndTestType.DEFAULT,
            IndependenceFactsOracle,
        ),
    ],
)
def test_make_ci_estimator(source, data_kind, ind_test_type, expected):
    ci_estimator, data = make_ci_estimator(source, data_kind, ind_test_type)
    assert isinstance(ci_estimator, expected)
    assert list(data.columns) == ["a", "b"] or list(data.columns) == ["a", "b", "c"]


def test_oracles_run_on_empty_data():
    _, data = make_ci_estimator(nx.DiGraph([("b", "a"), ("a", "c")]), DataKind.GRAPH)
    assert list(data.columns) == ["b", "a", "c"]
    assert len(data) == 0


def test_datasets_are_pooled():
    _, data = make_ci_estimator(
        [continuous_df(shift=1.0), continuous_df(n_samples=20, shift=5.0)],
        DataKind.DATASETS,
        IndTestType.FISHER_Z,
    )
    assert data.shape == (120, 3)
    assert abs(data.iloc[100:].mean(axis=0)).max() < 1e-12


@pytest.mark.parametrize(
    ("source", "data_kind", "ind_test_type"),
    [
        (nx.DiGraph([("a", "b")]), DataKind.GRAPH, IndTestType.FISHER_Z),
        (continuous_df(), DataKind.DATASET, IndTestType.D_SEPARATION),
        (IndependenceFacts(), DataKind.INDEPENDENCE_FACTS, IndTestType.G_SQUARE),
    ],
)
def test_unsupported_data_kind(source, data_kind, ind_test_type):
    with pytest.raises(UnsupportedDataKind, match="No independence test"):
        make_ci_estimator(source, data_kind, ind_test_type)


def test_get_test_uses_params():
    chooser = IndTestChooser()
    params = SearchParams(alpha=0.01)
    oracle = chooser.get_test(continuous_df(), DataKind.DATASET, params)
    assert oracle.alpha == 0.01
    assert isinstance(oracle.ci_estimator, FisherZCITest)
    assert chooser.supports(DataKind.DATASET, IndTestType.FISHER_Z)
    assert not chooser.supports(DataKind.GRAPH, IndTestType.FISHER_Z)


def test_register_extra_tests():
    class ConstantTest(BaseConditionalIndependenceTest):
        def test(self, df, x_vars, y_vars, z_covariates=None):
            return 0.0, 1.0

    chooser = IndTestChooser(
        {(DataKind.GRAPH, IndTestType.FISHER_Z): lambda graph: (ConstantTest(), None)}
    )
    ci_estimator, _ = chooser.make_ci_estimator(
        nx.DiGraph([("a", "b")]), DataKind.GRAPH, IndTestType.FISHER_Z
    )
    assert isinstance(ci_estimator, ConstantTest)

    # the default table is not changed
    with pytest.raises(UnsupportedDataKind):
        IndTestChooser().make_ci_estimator(
            nx.DiGraph([("a", "b")]), DataKind.GRAPH, IndTestType.FISHER_Z
        )
