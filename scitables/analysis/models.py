"""Models for correlation table construction.

This module defines the options record accepted by the table builder, the
per-cell statistic type, the structured diagnostics returned alongside a
table, and the error and warning types raised while building one.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import pandas as pd
import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scitables.analysis.config import config
from scitables.analysis.stats import significance_stars

__all__ = [
    "CellKind",
    "CorrelTableOptions",
    "CorrelTableResult",
    "CorrelationCell",
    "DataTypeWarning",
    "Diagnostic",
    "DiagnosticKind",
    "RenderUnavailableWarning",
    "ValidationError",
]

_LEADING_ZERO = re.compile(r"^(-?)0\.")


class ValidationError(ValueError):
    """Raised when table options are invalid for the given data.

    Attributes:
        argument: Name of the offending option (e.g. "var_names", "strata").
        message: Human-readable description of the problem.

    """

    def __init__(self, argument: str, message: str) -> None:
        """Initialize with the offending argument and a message."""
        super().__init__(f"{argument}: {message}")
        self.argument = argument
        self.message = message


class DataTypeWarning(UserWarning):
    """Non-numeric columns were coerced to unordered categorical levels."""


class RenderUnavailableWarning(UserWarning):
    """The HTML renderer is unavailable; plain output was returned instead."""


class CellKind(str, Enum):
    """Variable-type combination a cell was computed from."""

    NUMERIC_NUMERIC = "numeric-numeric"
    NUMERIC_CATEGORICAL = "numeric-categorical"
    CATEGORICAL_CATEGORICAL = "categorical-categorical"
    DIAGONAL = "diagonal"


class DiagnosticKind(str, Enum):
    """Kinds of automatic corrections reported with a result."""

    COERCED_TO_CATEGORICAL = "coerced_to_categorical"
    HTML_RENDER_UNAVAILABLE = "html_render_unavailable"


class Diagnostic(BaseModel):
    """A non-fatal correction applied while building a table."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind = Field(..., description="Kind of correction")
    message: str = Field(..., description="Human-readable description")
    columns: list[str] = Field(default_factory=list, description="Affected columns")


@dataclass(frozen=True)
class CorrelationCell:
    """One statistic of a correlation table before formatting.

    Attributes:
        kind: Variable-type combination of the pair.
        statistic: Coefficient, t, F or chi-square value (NaN if not computable).
        p_value: Two-tailed p-value (NaN if not computable).
        label: Prefix printed before the statistic (e.g. "t=").

    """

    kind: CellKind
    statistic: float = math.nan
    p_value: float = math.nan
    label: str = ""

    @property
    def stars(self) -> str:
        """Significance annotation for the p-value."""
        return significance_stars(self.p_value)

    def format(self, round_n: int) -> str:
        """Format the cell for display.

        Correlation coefficients drop the leading zero (``.45``, ``-.12``);
        test statistics keep it and carry their prefix (``t=-2.31``).

        Args:
            round_n: Number of decimal places

        Returns:
            Display string with significance stars appended

        """
        if self.kind is CellKind.DIAGONAL:
            return config.diagonal_sentinel
        if math.isnan(self.statistic):
            return config.not_available

        value = round(self.statistic, round_n)
        if value == 0:
            value = 0.0  # avoid "-0.00"
        text = f"{value:.{round_n}f}"
        if self.kind is CellKind.NUMERIC_NUMERIC:
            text = _LEADING_ZERO.sub(r"\1.", text)
        return f"{self.label}{text}{self.stars}"


def _as_list(value: Any) -> Any:
    """Accept a single column name where a list is expected."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, tuple | pd.Index):
        return list(value)
    return value


class CorrelTableOptions(BaseModel):
    """Configuration record for a correlation table.

    Precedence between options:
    - Cross-set mode (``vars2``) forces ``tri="all"`` and disables
      ``cutempty`` and ``colnum``.
    - Stratified mode (``strata``) computes level 1 as the upper and level 2
      as the lower triangle, and disables ``cutempty``.
    - ``colnum`` disables ``cutempty``.
    """

    model_config = ConfigDict(frozen=True)

    vars: list[str] | None = Field(default=None, description="Variables to correlate")
    var_names: list[str] | None = Field(default=None, description="Display labels for vars")
    vars2: list[str] | None = Field(default=None, description="Second variable set")
    var_names2: list[str] | None = Field(default=None, description="Display labels for vars2")
    method: Literal["pearson", "spearman"] = Field(
        default_factory=lambda: config.default_method
    )
    use: Literal["pairwise", "complete"] = Field(default_factory=lambda: config.default_use)
    round_n: int = Field(default_factory=lambda: config.precision_default, ge=0)
    tri: Literal["upper", "lower", "all"] = Field(default_factory=lambda: config.default_tri)
    cutempty: bool = False
    colnum: bool = False
    html: bool = False
    strata: str | None = None

    @field_validator("vars", "var_names", "vars2", "var_names2", mode="before")
    @classmethod
    def coerce_name_list(cls, v: Any) -> Any:
        """Allow a bare string or tuple for list-valued options."""
        return _as_list(v)

    @classmethod
    def build(cls, **kwargs: Any) -> CorrelTableOptions:
        """Create options, reporting invalid values as ValidationError.

        Raises:
            ValidationError: If any option has an invalid type or value.

        """
        try:
            return cls(**kwargs)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            argument = str(first["loc"][0]) if first["loc"] else "options"
            raise ValidationError(argument, first["msg"]) from e

    @property
    def cross_set(self) -> bool:
        """Whether a second variable list was supplied."""
        return self.vars2 is not None

    @property
    def stratified(self) -> bool:
        """Whether the table is split by a two-level variable."""
        return self.strata is not None

    @property
    def effective_tri(self) -> str:
        """Triangle policy after cross-set override."""
        return "all" if self.cross_set else self.tri

    @property
    def effective_colnum(self) -> bool:
        """Numbered-column flag after cross-set override."""
        return self.colnum and not self.cross_set

    @property
    def effective_cutempty(self) -> bool:
        """Trim flag after cross-set, strata and numbering overrides."""
        return (
            self.cutempty
            and not self.cross_set
            and not self.stratified
            and not self.colnum
            and self.effective_tri != "all"
        )


@dataclass
class CorrelTableResult:
    """Formatted correlation table with its caption.

    Attributes:
        table: Cell strings indexed by row and column labels.
        caption: Note describing method, missing data, tests and strata.
        html: Rendered HTML markup when requested and available.
        diagnostics: Automatic corrections applied while building the table.

    """

    table: pd.DataFrame
    caption: str
    html: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def shape(self) -> tuple[int, int]:
        """Table dimensions (rows, columns)."""
        return self.table.shape

    def to_markdown(self) -> str:
        """Render as a markdown pipe table followed by the caption."""
        from scitables.analysis.tables.render import render_markdown

        return render_markdown(self.table, self.caption)

    def to_latex(self, label: str = "tab:correlations") -> str:
        """Render as a booktabs LaTeX table."""
        from scitables.analysis.tables.render import render_latex

        return render_latex(self.table, self.caption, label=label)

    def to_html(self) -> str | None:
        """Render as HTML, or None if the renderer is unavailable."""
        from scitables.analysis.tables.render import render_html

        return render_html(self.table, self.caption)
