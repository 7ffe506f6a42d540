"""Statistical primitives for publication tables.

Provides the correlation matrix with pairwise sample sizes, the t-based
p-value for correlation coefficients, group-difference tests for mixed
variable types, and significance star annotation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.regression.linear_model import OLS
from statsmodels.tools import add_constant

from scitables.analysis.config import config

logger = logging.getLogger(__name__)

__all__ = [
    "significance_stars",
    "correlation_matrix",
    "pairwise_counts",
    "correlation_p_values",
    "welch_t_test",
    "one_way_anova",
    "chi_square_independence",
]


def significance_stars(p_value: float) -> str:
    """Annotate a p-value with significance stars.

    Thresholds come from config (default ``*** < .001``, ``** < .01``,
    ``* < .05``). Missing p-values get no stars.

    Args:
        p_value: Two-tailed p-value

    Returns:
        Star string, empty when not significant

    Examples:
        >>> significance_stars(0.0004)
        '***'
        >>> significance_stars(0.03)
        '*'
        >>> significance_stars(0.05)
        ''

    """
    if p_value is None or np.isnan(p_value):
        return ""
    for threshold, stars in config.significance_levels:
        if p_value < threshold:
            return stars
    return ""


def pairwise_counts(frame: pd.DataFrame) -> pd.DataFrame:
    """Count jointly observed rows for every pair of columns.

    Args:
        frame: Numeric DataFrame, possibly with missing values

    Returns:
        Square DataFrame of pairwise sample sizes (diagonal = per-column n)

    """
    observed = frame.notna().astype(int)
    return observed.T @ observed


def correlation_matrix(
    frame: pd.DataFrame, method: str = "pearson"
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Compute pairwise-complete correlation coefficients.

    Each coefficient uses only the rows where both columns are observed,
    so a complete-case matrix is obtained by dropping incomplete rows first.
    Pairs observed together fewer than ``config.min_sample_correlation``
    times get NaN.

    Args:
        frame: Numeric DataFrame
        method: "pearson" or "spearman"

    Returns:
        Tuple of (coefficients, pairwise sample sizes)

    """
    r = frame.corr(method=method, min_periods=config.min_sample_correlation)
    n = pairwise_counts(frame)
    return r, n


def correlation_p_values(
    r: pd.DataFrame | np.ndarray, n: pd.DataFrame | np.ndarray
) -> np.ndarray:
    """Two-tailed p-values for correlation coefficients.

    Uses ``t = r * sqrt(n - 2) / sqrt(1 - r^2)`` against Student's t with
    n - 2 degrees of freedom. Pairs with fewer observations than
    ``config.min_sample_correlation`` get NaN.

    Args:
        r: Correlation coefficients
        n: Pairwise sample sizes (same shape as r)

    Returns:
        Array of p-values clamped to [0, 1]

    """
    r_arr = np.clip(np.asarray(r, dtype=float), -1.0, 1.0)
    n_arr = np.asarray(n, dtype=float)
    df = n_arr - 2

    with np.errstate(divide="ignore", invalid="ignore"):
        t = r_arr * np.sqrt(df) / np.sqrt(1 - r_arr**2)
        p = 2 * stats.t.sf(np.abs(t), df)

    return np.where(n_arr < config.min_sample_correlation, np.nan, np.minimum(p, 1.0))


def _split_groups(
    values: pd.Series, groups: pd.Series, levels: Sequence[object]
) -> list[np.ndarray]:
    """Split observed values by group level, dropping incomplete rows."""
    mask = values.notna() & groups.notna()
    observed_values = values[mask]
    observed_groups = groups[mask]
    return [observed_values[observed_groups == level].to_numpy(dtype=float) for level in levels]


def welch_t_test(
    values: pd.Series, groups: pd.Series, levels: Sequence[object]
) -> tuple[float, float]:
    """Welch two-sample t-test of values between two group levels.

    The statistic is mean(level 1) - mean(level 2) over its standard error,
    without assuming equal variances.

    Args:
        values: Numeric outcome
        groups: Group membership aligned with values
        levels: The two levels, in order

    Returns:
        Tuple of (t statistic, p-value), or (NaN, NaN) if either group has
        fewer than ``config.min_sample_group`` observations

    """
    g1, g2 = _split_groups(values, groups, levels)

    if len(g1) < config.min_sample_group or len(g2) < config.min_sample_group:
        logger.debug(
            f"Welch t-test skipped for {values.name} by {groups.name}: "
            f"group sizes {len(g1)}, {len(g2)}"
        )
        return np.nan, np.nan

    statistic, pvalue = stats.ttest_ind(g1, g2, equal_var=False)
    return float(statistic), float(pvalue)


def one_way_anova(
    values: pd.Series, groups: pd.Series, levels: Sequence[object]
) -> tuple[float, float]:
    """One-way analysis of variance of values across group levels.

    Fits the cell-means model by OLS with treatment-coded levels; the overall
    regression F test is the one-way ANOVA F test.

    Args:
        values: Numeric outcome
        groups: Group membership aligned with values
        levels: Group levels

    Returns:
        Tuple of (F statistic, p-value), or (NaN, NaN) if fewer than two
        levels are observed or no residual degrees of freedom remain

    """
    mask = values.notna() & groups.notna()
    y = values[mask].to_numpy(dtype=float)
    observed = groups[mask]
    present = [level for level in levels if (observed == level).any()]

    if len(present) < 2 or len(y) <= len(present):
        logger.debug(
            f"ANOVA skipped for {values.name} by {groups.name}: "
            f"{len(present)} observed levels, n={len(y)}"
        )
        return np.nan, np.nan

    codes = pd.Categorical(observed, categories=present)
    dummies = pd.get_dummies(codes, drop_first=True, dtype=float)
    design = add_constant(dummies.to_numpy(), has_constant="add")

    with np.errstate(divide="ignore", invalid="ignore"):
        model = OLS(y, design).fit()
        return float(model.fvalue), float(model.f_pvalue)


def chi_square_independence(a: pd.Series, b: pd.Series) -> tuple[float, float]:
    """Pearson chi-square test of independence between two categorical series.

    Rows missing either value are dropped. 2x2 tables use Yates' continuity
    correction.

    Args:
        a: First categorical variable
        b: Second categorical variable

    Returns:
        Tuple of (chi-square statistic, p-value), or (NaN, NaN) if either
        variable has fewer than two observed levels

    """
    mask = a.notna() & b.notna()
    table = pd.crosstab(a[mask], b[mask])

    if table.shape[0] < 2 or table.shape[1] < 2:
        logger.debug(
            f"Chi-square skipped for {a.name} x {b.name}: contingency table {table.shape}"
        )
        return np.nan, np.nan

    statistic, pvalue, _, _ = stats.chi2_contingency(table.to_numpy(), correction=True)
    return float(statistic), float(pvalue)
