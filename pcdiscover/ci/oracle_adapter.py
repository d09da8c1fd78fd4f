import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

import pandas as pd

from pcdiscover.exceptions import SearchAborted
from pcdiscover.typing import Column

from .base import BaseConditionalIndependenceTest

logger = logging.getLogger()


@dataclass(frozen=True)
class IndependenceResult:
    """The outcome of one conditional independence query.

    Parameters
    ----------
    x : Column
        The first variable.
    y : Column
        The second variable.
    z : frozenset
        The conditioning set.
    statistic : float
        The test statistic.
    pvalue : float
        The p-value of the test.
    independent : bool
        Whether the p-value exceeds the significance level.
    """

    x: Column
    y: Column
    z: FrozenSet[Column]
    statistic: float
    pvalue: float
    independent: bool


class IndependenceOracle:
    """Bind a conditional independence test to its data and significance level.

    The search only asks yes/no questions of the form "is X independent of Y
    given Z?". This adapter answers them with the wrapped test, counts them,
    and turns any failure of the test into :class:`SearchAborted`.

    Parameters
    ----------
    ci_estimator : BaseConditionalIndependenceTest
        The conditional independence test.
    data : pd.DataFrame
        The data the test runs on. Oracles over a graph or over facts run on
        an empty DataFrame whose columns are the variables.
    alpha : float
        The significance level, by default 0.05. X and Y are independent given
        Z when the p-value is strictly greater than ``alpha``.
    """

    def __init__(
        self,
        ci_estimator: BaseConditionalIndependenceTest,
        data: pd.DataFrame,
        alpha: float = 0.05,
    ) -> None:
        self.ci_estimator = ci_estimator
        self.data = data
        self.alpha = alpha
        self.n_ci_tests = 0

    @property
    def variables(self):
        return list(self.data.columns)

    def test(
        self, x: Column, y: Column, z: Optional[Iterable[Column]] = None
    ) -> IndependenceResult:
        """Test X and Y for independence given Z.

        Parameters
        ----------
        x : Column
            The first variable.
        y : Column
            The second variable.
        z : iterable of Column, optional
            The conditioning set, by default empty.

        Returns
        -------
        result : IndependenceResult
            The statistic, p-value and decision.

        Raises
        ------
        SearchAborted
            If the wrapped test raised an exception.
        """
        z = frozenset(z) if z is not None else frozenset()
        self.n_ci_tests += 1
        try:
            statistic, pvalue = self.ci_estimator.test(self.data, {x}, {y}, set(z))
        except Exception as e:
            raise SearchAborted(
                e, f"Testing {x} and {y} given {sorted(z, key=str)} with {self} failed: {e!r}"
            ) from e

        independent = pvalue > self.alpha
        logger.debug(
            f"{x} {'_||_' if independent else 'dep'} {y} | {sorted(z, key=str)}: "
            f"stat={statistic}, pvalue={pvalue}"
        )
        return IndependenceResult(x, y, z, statistic, pvalue, independent)

    def is_independent(self, x: Column, y: Column, z: Optional[Iterable[Column]] = None) -> bool:
        return self.test(x, y, z).independent

    def __str__(self) -> str:
        return str(self.ci_estimator)
