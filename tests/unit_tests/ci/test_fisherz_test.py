import numpy as np
import pandas as pd
import pytest

from pcdiscover.ci import FisherZCITest
from pcdiscover.ci.fisher_z_test import fisherz

seed = 12345


def make_df():
    # We construct a SCM where X1 -> Y <- X and Y -> Z
    # so X1 is independent from X, but conditionally dependent
    # given Y or Z
    rng = np.random.RandomState(seed)
    X = rng.randn(300, 1)
    X1 = rng.randn(300, 1)
    Y = X + X1 + 0.5 * rng.randn(300, 1)
    Z = Y + 0.1 * rng.randn(300, 1)
    return pd.DataFrame(np.hstack((X, X1, Y, Z)), columns=["x", "x1", "y", "z"])


def test_fisher_z():
    """Test Fisher Z test for Gaussian data."""
    ci_estimator = FisherZCITest()
    df = make_df()

    _, pvalue = ci_estimator.test(df, {"x"}, {"x1"})
    assert pvalue > 0.05
    _, pvalue = ci_estimator.test(df, {"x"}, {"x1"}, {"z"})
    assert pvalue < 0.05
    _, pvalue = ci_estimator.test(df, {"x"}, {"x1"}, {"y"})
    assert pvalue < 0.05
    _, pvalue = ci_estimator.test(df, {"x"}, {"z"})
    assert pvalue < 0.05
    _, pvalue = ci_estimator.test(df, {"x"}, {"z"}, {"y"})
    assert pvalue > 0.05


def test_fisher_z_with_correlation_matrix():
    df = make_df()
    corr = np.corrcoef(df.to_numpy().T)

    stat, pvalue = FisherZCITest().test(df, {"x"}, {"z"}, {"y"})
    stat_corr, pvalue_corr = FisherZCITest(correlation_matrix=corr).test(df, {"x"}, {"z"}, {"y"})
    assert stat == pytest.approx(stat_corr)
    assert pvalue == pytest.approx(pvalue_corr)


def test_fisher_z_is_symmetric():
    df = make_df()
    stat, pvalue = fisherz(df, "x", "y", {"z"})
    other_stat, other_pvalue = fisherz(df, "y", "x", {"z"})
    assert stat == pytest.approx(other_stat)
    assert pvalue == pytest.approx(other_pvalue)


def test_fisher_z_input_errors():
    df = make_df()
    ci_estimator = FisherZCITest()
    with pytest.raises(ValueError, match="The x variables"):
        ci_estimator.test(df, {"w"}, {"y"})
    with pytest.raises(ValueError, match="The z conditioning set"):
        ci_estimator.test(df, {"x"}, {"y"}, {"w"})
    with pytest.raises(RuntimeError, match="does not support multivariate input"):
        ci_estimator.test(df, {"x", "x1"}, {"y"})
