"""Unit tests for statistical functions."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from scipy import stats


class TestSignificanceStars:
    """Star annotation is monotonic in the p-value thresholds."""

    @pytest.mark.parametrize(
        "p_value,expected",
        [
            (0.0, "***"),
            (0.0009, "***"),
            (0.001, "**"),
            (0.0099, "**"),
            (0.01, "*"),
            (0.049, "*"),
            (0.05, ""),
            (0.5, ""),
            (1.0, ""),
            (float("nan"), ""),
        ],
        ids=[
            "zero",
            "below_001",
            "at_001",
            "below_01",
            "at_01",
            "below_05",
            "at_05",
            "half",
            "one",
            "nan",
        ],
    )
    def test_stars(self, p_value, expected):
        """Test thresholds are strict less-than comparisons."""
        from scitables.analysis.stats import significance_stars

        assert significance_stars(p_value) == expected

    def test_stars_never_increase_with_p(self):
        """Test that a larger p-value never earns more stars."""
        from scitables.analysis.stats import significance_stars

        p_values = np.linspace(0, 0.2, 401)
        counts = [len(significance_stars(p)) for p in p_values]
        assert all(a >= b for a, b in zip(counts, counts[1:], strict=False))


def test_pairwise_counts(numeric_only):
    """Test pairwise n is the jointly observed row count."""
    from scitables.analysis.stats import pairwise_counts

    n = pairwise_counts(numeric_only)

    assert n.loc["Age", "Age"] == 59
    assert n.loc["iq", "iq"] == 58
    assert n.loc["Age", "iq"] == 57
    assert n.loc["Height", "depressT"] == 60
    assert (n.to_numpy() == n.to_numpy().T).all()


def test_correlation_matrix_pairwise(numeric_only):
    """Test coefficients use pairwise-complete rows."""
    from scitables.analysis.stats import correlation_matrix

    r, _ = correlation_matrix(numeric_only)

    mask = numeric_only["Age"].notna() & numeric_only["iq"].notna()
    expected, _ = stats.pearsonr(numeric_only.loc[mask, "Age"], numeric_only.loc[mask, "iq"])
    assert r.loc["Age", "iq"] == pytest.approx(expected)


def test_correlation_matrix_requires_three_pairs():
    """Test pairs observed together fewer than three times get NaN."""
    from scitables.analysis.stats import correlation_matrix

    frame = pd.DataFrame({"x": [1.0, 2.0, 3.0, 4.0], "y": [1.0, 5.0, np.nan, np.nan]})
    r, n = correlation_matrix(frame)

    assert n.loc["x", "y"] == 2
    assert np.isnan(r.loc["x", "y"])
    assert r.loc["x", "x"] == pytest.approx(1.0)


def test_correlation_matrix_spearman(numeric_only):
    """Test Spearman coefficients match scipy on complete pairs."""
    from scitables.analysis.stats import correlation_matrix

    r, _ = correlation_matrix(numeric_only, method="spearman")

    expected, _ = stats.spearmanr(numeric_only["depressT"], numeric_only["anxT"])
    assert r.loc["depressT", "anxT"] == pytest.approx(expected)


def test_correlation_p_values_match_pearsonr(numeric_only):
    """Test t-based p-values agree with scipy's Pearson test."""
    from scitables.analysis.stats import correlation_matrix, correlation_p_values

    r, n = correlation_matrix(numeric_only)
    p = correlation_p_values(r, n)

    idx = list(r.columns)
    for a, b in [("Age", "iq"), ("iq", "depressT"), ("Height", "iq")]:
        mask = numeric_only[a].notna() & numeric_only[b].notna()
        _, expected = stats.pearsonr(numeric_only.loc[mask, a], numeric_only.loc[mask, b])
        assert p[idx.index(a), idx.index(b)] == pytest.approx(expected, rel=1e-6)


def test_correlation_p_values_edge_cases():
    """Test perfect correlation gives p=0 and tiny samples give NaN."""
    from scitables.analysis.stats import correlation_p_values

    p = correlation_p_values(np.array([[1.0, -1.0, 0.5]]), np.array([[10, 10, 2]]))

    assert p[0, 0] == 0.0
    assert p[0, 1] == 0.0
    assert np.isnan(p[0, 2])


def test_correlation_p_values_clamped():
    """Test zero correlation gives p=1."""
    from scitables.analysis.stats import correlation_p_values

    p = correlation_p_values(np.array([0.0]), np.array([30]))
    assert p[0] == pytest.approx(1.0)


def test_welch_t_test_matches_scipy(psydat):
    """Test Welch t compares level 1 minus level 2."""
    from scitables.analysis.stats import welch_t_test

    t, p = welch_t_test(psydat["Height"], psydat["Sex"], ("F", "M"))

    expected = stats.ttest_ind(
        psydat.loc[psydat["Sex"] == "F", "Height"],
        psydat.loc[psydat["Sex"] == "M", "Height"],
        equal_var=False,
    )
    assert t == pytest.approx(expected.statistic)
    assert p == pytest.approx(expected.pvalue)


def test_welch_t_test_drops_missing(psydat):
    """Test rows missing the outcome are excluded."""
    from scitables.analysis.stats import welch_t_test

    t, _ = welch_t_test(psydat["Age"], psydat["Sex"], ("F", "M"))

    observed = psydat.dropna(subset=["Age"])
    expected = stats.ttest_ind(
        observed.loc[observed["Sex"] == "F", "Age"],
        observed.loc[observed["Sex"] == "M", "Age"],
        equal_var=False,
    )
    assert t == pytest.approx(expected.statistic)


def test_welch_t_test_small_group():
    """Test a group with one observation gives NaN."""
    from scitables.analysis.stats import welch_t_test

    values = pd.Series([1.0, 2.0, 3.0, 4.0])
    groups = pd.Series(["a", "a", "a", "b"])

    t, p = welch_t_test(values, groups, ("a", "b"))
    assert np.isnan(t)
    assert np.isnan(p)


def test_one_way_anova_matches_f_oneway(psydat):
    """Test the OLS F test equals the classic one-way ANOVA F."""
    from scitables.analysis.stats import one_way_anova

    levels = ("50-100k", "<50k", ">100k")
    f, p = one_way_anova(psydat["Height"], psydat["Income"], levels)

    expected = stats.f_oneway(
        *[psydat.loc[psydat["Income"] == level, "Height"] for level in levels]
    )
    assert f == pytest.approx(expected.statistic)
    assert p == pytest.approx(expected.pvalue)


def test_one_way_anova_singleton_group():
    """Test a level with one observation still contributes."""
    from scitables.analysis.stats import one_way_anova

    values = pd.Series([1.0, 2.0, 3.0, 5.0, 6.0, 10.0])
    groups = pd.Series(["a", "a", "b", "b", "b", "c"])

    f, _ = one_way_anova(values, groups, ("a", "b", "c"))

    expected = stats.f_oneway([1.0, 2.0], [3.0, 5.0, 6.0], [10.0])
    assert f == pytest.approx(expected.statistic)


def test_one_way_anova_single_level():
    """Test fewer than two observed levels gives NaN."""
    from scitables.analysis.stats import one_way_anova

    values = pd.Series([1.0, 2.0, 3.0])
    groups = pd.Series(["a", "a", "a"])

    f, p = one_way_anova(values, groups, ("a", "b", "c"))
    assert np.isnan(f)
    assert np.isnan(p)


def test_chi_square_matches_scipy():
    """Test chi-square of independence with Yates correction on 2x2."""
    from scitables.analysis.stats import chi_square_independence

    a = pd.Series(["x"] * 30 + ["y"] * 30)
    b = pd.Series(["u"] * 25 + ["v"] * 5 + ["u"] * 8 + ["v"] * 22)

    chi2, p = chi_square_independence(a, b)

    expected, expected_p, _, _ = stats.chi2_contingency([[25, 5], [8, 22]], correction=True)
    assert chi2 == pytest.approx(expected)
    assert p == pytest.approx(expected_p)


def test_chi_square_balanced_is_zero(psydat):
    """Test perfectly balanced categories give chi-square 0 and p=1."""
    from scitables.analysis.stats import chi_square_independence

    chi2, p = chi_square_independence(psydat["Sex"], psydat["Income"])
    assert chi2 == pytest.approx(0.0)
    assert p == pytest.approx(1.0)


def test_chi_square_single_level():
    """Test a constant variable gives NaN."""
    from scitables.analysis.stats import chi_square_independence

    chi2, p = chi_square_independence(pd.Series(["a", "a", "a"]), pd.Series(["x", "y", "x"]))
    assert np.isnan(chi2)
    assert np.isnan(p)
