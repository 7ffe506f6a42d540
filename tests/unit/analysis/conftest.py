"""Shared fixtures for analysis tests."""

from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest


@pytest.fixture(scope="function", autouse=True)
def clear_patches():
    """Clear all mock patches between tests to prevent pollution."""
    yield
    patch.stopall()


@pytest.fixture
def psydat():
    """Synthetic psychology dataset for testing (60 rows).

    Height depends on Age, anxT depends on depressT, iq is independent.
    Sex alternates F/M and Income cycles through three bands, so the two
    categorical columns are exactly balanced against each other.
    Missing values: Age row 3, iq rows 5 and 10.
    """
    np.random.seed(42)
    n = 60

    age = np.random.uniform(96, 216, n)
    sex = np.array(["F", "M"] * (n // 2))
    height = 30 + 0.15 * age + np.where(sex == "M", 2.0, 0.0) + np.random.normal(0, 2, n)
    iq = np.random.normal(100, 15, n)
    depress = np.random.normal(50, 10, n)
    anx = 0.6 * depress + np.random.normal(20, 6, n)
    income = np.array(["<50k", "50-100k", ">100k"] * (n // 3))

    df = pd.DataFrame(
        {
            "Age": age,
            "Sex": sex,
            "Height": height,
            "iq": iq,
            "depressT": depress,
            "anxT": anx,
            "Income": income,
        }
    )
    df.loc[3, "Age"] = np.nan
    df.loc[[5, 10], "iq"] = np.nan
    return df


@pytest.fixture
def numeric_only(psydat):
    """Numeric columns of psydat."""
    return psydat[["Age", "Height", "iq", "depressT", "anxT"]].copy()


@pytest.fixture
def fmt_r():
    """Reference formatter for correlation cells (leading zero stripped)."""
    from scitables.analysis.stats import significance_stars

    def _fmt(r: float, p: float, round_n: int = 2) -> str:
        text = f"{round(r, round_n):.{round_n}f}"
        if text.startswith("0."):
            text = text[1:]
        elif text.startswith("-0."):
            text = "-" + text[2:]
        return text + significance_stars(p)

    return _fmt


@pytest.fixture
def fmt_stat():
    """Reference formatter for prefixed test statistics."""
    from scitables.analysis.stats import significance_stars

    def _fmt(prefix: str, value: float, p: float, round_n: int = 2) -> str:
        return f"{prefix}{round(value, round_n):.{round_n}f}{significance_stars(p)}"

    return _fmt
