from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

import numpy as np
import pandas as pd

from pcdiscover.typing import Column

from .base import BaseConditionalIndependenceTest

Fact = Tuple[Column, Column, FrozenSet[Column]]


class IndependenceFacts:
    """A list of known conditional independence statements.

    Each fact ``(x, y, z)`` states that ``x`` and ``y`` are independent given
    the set ``z``. Facts are symmetric in ``x`` and ``y``. Any statement that
    is not listed is a dependence.

    Parameters
    ----------
    facts : iterable of tuple, optional
        The facts as ``(x, y, z)`` triples, where ``z`` is an iterable.
    variables : list, optional
        The variables the facts are over, in search order. By default the
        variables mentioned by the facts, in the order they first appear.
        Variables that are dependent on every other variable are only
        known when listed here.

    Examples
    --------
    >>> facts = IndependenceFacts([("A", "B", [])], variables=["A", "B", "C", "D"])
    >>> facts.is_independent("B", "A", [])
    True
    """

    def __init__(
        self,
        facts: Optional[Iterable[Tuple[Column, Column, Iterable[Column]]]] = None,
        variables: Optional[List[Column]] = None,
    ) -> None:
        self._facts: Set[Fact] = set()
        self._variables: List[Column] = list(variables) if variables is not None else []
        for x, y, z in facts or []:
            self.add(x, y, z)

    @property
    def variables(self) -> List[Column]:
        return list(self._variables)

    def add(self, x: Column, y: Column, z: Iterable[Column] = ()) -> "IndependenceFacts":
        """Record that ``x`` and ``y`` are independent given ``z``."""
        z = frozenset(z)
        if x == y:
            raise ValueError(f"An independence fact needs two distinct variables, not {x}.")
        if x in z or y in z:
            raise ValueError(f"The conditioning set {set(z)} cannot contain {x} or {y}.")

        for node in [x, y, *sorted(z, key=str)]:
            if node not in self._variables:
                self._variables.append(node)
        self._facts.add((x, y, z))
        self._facts.add((y, x, z))
        return self

    def is_independent(self, x: Column, y: Column, z: Iterable[Column] = ()) -> bool:
        return (x, y, frozenset(z)) in self._facts

    def __len__(self) -> int:
        return len(self._facts) // 2

    def __repr__(self) -> str:
        facts = sorted(
            (f"{x} _||_ {y} | {sorted(z, key=str)}" for x, y, z in self._facts if str(x) <= str(y)),
        )
        return f"IndependenceFacts({facts})"


class IndependenceFactsOracle(BaseConditionalIndependenceTest):
    """Conditional independence testing by lookup in a list of facts.

    Parameters
    ----------
    facts : IndependenceFacts
        The known independence statements.
    """

    def __init__(self, facts: IndependenceFacts) -> None:
        self.facts = facts

    def test(
        self,
        df: pd.DataFrame,
        x_vars: Set[Column],
        y_vars: Set[Column],
        z_covariates: Optional[Set[Column]] = None,
    ):
        """Look up whether X and Y are independent given Z.

        Parameters
        ----------
        df : pd.DataFrame
            The data matrix. Passed in for API consistency, but not used
            beyond checking the variables.
        x_vars : Set of column
            A variable of the facts.
        y_vars : Set of column
            A variable of the facts.
        z_covariates : Set, optional
            The conditioning set, by default None.

        Returns
        -------
        statistic : float
            ``0`` if independent and ``inf`` otherwise.
        pvalue : float
            ``1.0`` if the facts list the independence and ``0.0`` otherwise.
        """
        self._check_test_input(df, x_vars, y_vars, z_covariates)
        if z_covariates is None:
            z_covariates = set()
        (x_var,) = x_vars
        (y_var,) = y_vars

        if self.facts.is_independent(x_var, y_var, z_covariates):
            return 0.0, 1.0
        return np.inf, 0.0
