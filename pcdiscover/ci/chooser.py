import logging
from typing import Callable, Dict, List, Tuple

import networkx as nx
import pandas as pd

from pcdiscover.config import DataKind, IndTestType, SearchParams
from pcdiscover.datasets import is_continuous, pool_datasets
from pcdiscover.exceptions import UnsupportedDataKind

from .base import BaseConditionalIndependenceTest
from .facts import IndependenceFacts, IndependenceFactsOracle
from .fisher_z_test import FisherZCITest
from .g_test import GSquareCITest
from .oracle import Oracle
from .oracle_adapter import IndependenceOracle
from .utils import dummy_sample

logger = logging.getLogger()

# builds a CI test and the data it runs on from the search input
EstimatorFactory = Callable[[object], Tuple[BaseConditionalIndependenceTest, pd.DataFrame]]


def _fisherz_on_dataset(data: pd.DataFrame):
    return FisherZCITest(), data


def _gsquare_on_dataset(data: pd.DataFrame):
    return GSquareCITest(data_type="discrete"), data


def _default_on_dataset(data: pd.DataFrame):
    if is_continuous(data):
        return _fisherz_on_dataset(data)
    return _gsquare_on_dataset(data)


def _pooled(factory: EstimatorFactory) -> EstimatorFactory:
    def _factory(datasets: List[pd.DataFrame]):
        return factory(pool_datasets(datasets, center=True))

    return _factory


def _dseparation_on_graph(graph: nx.DiGraph):
    return Oracle(graph), dummy_sample(graph.nodes)


def _lookup_in_facts(facts: IndependenceFacts):
    return IndependenceFactsOracle(facts), dummy_sample(facts.variables)


DEFAULT_TESTS: Dict[Tuple[DataKind, IndTestType], EstimatorFactory] = {
    (DataKind.DATASET, IndTestType.FISHER_Z): _fisherz_on_dataset,
    (DataKind.DATASET, IndTestType.G_SQUARE): _gsquare_on_dataset,
    (DataKind.DATASET, IndTestType.DEFAULT): _default_on_dataset,
    (DataKind.DATASETS, IndTestType.FISHER_Z): _pooled(_fisherz_on_dataset),
    (DataKind.DATASETS, IndTestType.G_SQUARE): _pooled(_gsquare_on_dataset),
    (DataKind.DATASETS, IndTestType.DEFAULT): _pooled(_default_on_dataset),
    (DataKind.GRAPH, IndTestType.D_SEPARATION): _dseparation_on_graph,
    (DataKind.GRAPH, IndTestType.DEFAULT): _dseparation_on_graph,
    (DataKind.INDEPENDENCE_FACTS, IndTestType.INDEPENDENCE_FACTS): _lookup_in_facts,
    (DataKind.INDEPENDENCE_FACTS, IndTestType.DEFAULT): _lookup_in_facts,
}


class IndTestChooser:
    """Choose the conditional independence test of a search.

    The test is looked up in a table keyed by the kind of input and the
    requested test type. Lookups that are not in the table are refused
    before any test runs.

    Parameters
    ----------
    tests : dict, optional
        Extra entries for the table, mapping ``(DataKind, IndTestType)`` to a
        callable that takes the search input and returns the CI test and the
        DataFrame it runs on. They take precedence over the default entries.
    """

    def __init__(
        self, tests: Dict[Tuple[DataKind, IndTestType], EstimatorFactory] = None
    ) -> None:
        self.tests = dict(DEFAULT_TESTS)
        if tests is not None:
            self.tests.update(tests)

    def supports(self, data_kind: DataKind, ind_test_type: IndTestType) -> bool:
        return (data_kind, ind_test_type) in self.tests

    def make_ci_estimator(
        self, source, data_kind: DataKind, ind_test_type: IndTestType
    ) -> Tuple[BaseConditionalIndependenceTest, pd.DataFrame]:
        """Build the CI test for the search input.

        Parameters
        ----------
        source : object
            The search input: a DataFrame, a list of DataFrames, a DAG or
            independence facts, matching ``data_kind``.
        data_kind : DataKind
            The kind of ``source``.
        ind_test_type : IndTestType
            The requested test.

        Returns
        -------
        ci_estimator : BaseConditionalIndependenceTest
            The CI test.
        data : pd.DataFrame
            The data the test runs on.

        Raises
        ------
        UnsupportedDataKind
            If no test is registered for ``data_kind`` and ``ind_test_type``.
        """
        try:
            factory = self.tests[(data_kind, ind_test_type)]
        except KeyError:
            raise UnsupportedDataKind(
                f"No independence test {ind_test_type.value!r} is available for "
                f"data of kind {data_kind.value!r}."
            ) from None

        ci_estimator, data = factory(source)
        logger.info(f"Using {ci_estimator} for data of kind {data_kind.value!r}.")
        return ci_estimator, data

    def get_test(self, source, data_kind: DataKind, params: SearchParams) -> IndependenceOracle:
        """Build the independence oracle of a search.

        Parameters
        ----------
        source : object
            The search input, matching ``data_kind``.
        data_kind : DataKind
            The kind of ``source``.
        params : SearchParams
            The search parameters, which give the test type and the
            significance level.

        Returns
        -------
        oracle : IndependenceOracle
            The test bound to its data and significance level.
        """
        ci_estimator, data = self.make_ci_estimator(source, data_kind, params.ind_test_type)
        return IndependenceOracle(ci_estimator, data, alpha=params.alpha)


def make_ci_estimator(
    source, data_kind: DataKind, ind_test_type: IndTestType = IndTestType.DEFAULT
) -> Tuple[BaseConditionalIndependenceTest, pd.DataFrame]:
    """Build the CI test for the search input with the default table.

    See :meth:`IndTestChooser.make_ci_estimator`.
    """
    return IndTestChooser().make_ci_estimator(source, data_kind, ind_test_type)
