"""Correlation table with significance stars.

Builds the publication correlation matrix: coefficients for numeric pairs,
t / ANOVA F statistics for numeric-categorical pairs and chi-square for
categorical pairs, each annotated with ``* p<.05, ** p<.01, *** p<.001``.
The matrix can be reduced to one triangle, numbered, split by a two-level
stratification variable, or restricted to the cross block of two variable
sets.

Pipeline: validate -> select/clean -> compute cells -> merge strata ->
format/trim -> caption -> render.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from scitables.analysis.config import config
from scitables.analysis.dataset import Dataset, Variable, VariableKind, VariableSpec
from scitables.analysis.models import (
    CellKind,
    CorrelationCell,
    CorrelTableOptions,
    CorrelTableResult,
    DataTypeWarning,
    Diagnostic,
    DiagnosticKind,
    ValidationError,
)
from scitables.analysis.stats import (
    chi_square_independence,
    correlation_matrix,
    correlation_p_values,
    one_way_anova,
    welch_t_test,
)
from scitables.analysis.tables.render import render_html

logger = logging.getLogger(__name__)

__all__ = ["build_correltable", "compute_cells", "correltable", "significance_legend"]

_GROUP_NOTE = (
    "Group differences for continuous and categorical variables are indicated "
    "by t-statistic/ANOVA F and chi-squared, respectively."
)


def correltable(
    data: pd.DataFrame | Dataset,
    vars: Sequence[str] | None = None,
    var_names: Sequence[str] | None = None,
    vars2: Sequence[str] | None = None,
    var_names2: Sequence[str] | None = None,
    method: str | None = None,
    use: str | None = None,
    round_n: int | None = None,
    tri: str | None = None,
    cutempty: bool = False,
    colnum: bool = False,
    html: bool = False,
    strata: str | None = None,
) -> CorrelTableResult:
    """Create a correlation table with stars for significance.

    Args:
        data: Input dataset
        vars: Variables to correlate (default: all columns except ``strata``)
        var_names: Display labels for ``vars``; must match it in length
        vars2: Second variable set for a cross-correlation block; overrides
            ``tri``, ``cutempty`` and ``colnum``
        var_names2: Display labels for ``vars2``
        method: "pearson" (default) or "spearman"
        use: "pairwise" (default) or "complete" case deletion
        round_n: Decimal places (default from config: 2)
        tri: Keep the "upper" (default), "lower" or "all" cells
        cutempty: Drop the empty row/column left by ``tri``
        colnum: Number rows and use the numbers as column labels
        html: Also render HTML markup (needs Jinja2)
        strata: Two-level variable; level 1 fills the upper triangle and
            level 2 the lower triangle. Cannot be combined with ``vars2``.

    Returns:
        CorrelTableResult with the formatted table and caption

    Raises:
        ValidationError: If options are invalid for the data.

    Examples:
        >>> result = correltable(df, vars=["Age", "Height", "iq"], tri="lower")
        >>> result.table
        >>> result.caption

    """
    supplied: dict[str, Any] = {
        "vars": vars,
        "var_names": var_names,
        "vars2": vars2,
        "var_names2": var_names2,
        "method": method,
        "use": use,
        "round_n": round_n,
        "tri": tri,
        "strata": strata,
    }
    options = CorrelTableOptions.build(
        **{key: value for key, value in supplied.items() if value is not None},
        cutempty=cutempty,
        colnum=colnum,
        html=html,
    )
    return build_correltable(data, options)


def build_correltable(
    data: pd.DataFrame | Dataset, options: CorrelTableOptions
) -> CorrelTableResult:
    """Build a correlation table from an options record.

    Args:
        data: Input dataset
        options: Table options

    Returns:
        CorrelTableResult with the formatted table and caption

    Raises:
        ValidationError: If options are invalid for the data.

    """
    dataset = data if isinstance(data, Dataset) else Dataset(data)

    primary, secondary = _select(dataset, options)
    selected = primary + secondary
    strata_levels = _validate_strata(dataset, options, selected)

    missing = dataset.missing_counts(selected.names)
    dropped = 0
    if options.use == "complete":
        dataset, dropped = dataset.complete_cases(selected.names)
        logger.debug(f"Complete-case deletion dropped {dropped} rows, {dataset.n_rows} remain")

    variables = dataset.resolve(selected)
    diagnostics: list[Diagnostic] = []

    coerced = [
        v.name
        for v in variables
        if v.kind is VariableKind.CATEGORICAL and not dataset.is_declared_categorical(v.name)
    ]
    if coerced:
        message = f"Converting non-numeric columns to categorical: {', '.join(coerced)}"
        warnings.warn(message, DataTypeWarning, stacklevel=3)
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.COERCED_TO_CATEGORICAL, message=message, columns=coerced
            )
        )

    if strata_levels is not None:
        matrix = _stratified_matrix(dataset, variables, options, strata_levels)
    else:
        cells = compute_cells(dataset, variables, options.method)
        matrix = _apply_triangle(_format_cells(cells, options.round_n), options.effective_tri)

    table = _label_and_trim(matrix, primary, secondary, options)

    caption = _caption(
        options,
        variables,
        missing,
        n_rows=dataset.n_rows,
        dropped=dropped,
        strata_levels=strata_levels,
    )

    result = CorrelTableResult(table=table, caption=caption, diagnostics=diagnostics)
    if options.html:
        result.html = render_html(table, caption)
        if result.html is None:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.HTML_RENDER_UNAVAILABLE,
                    message="HTML output needs Jinja2; returned plain table instead",
                )
            )
    return result


def _select(dataset: Dataset, options: CorrelTableOptions) -> tuple[VariableSpec, VariableSpec]:
    """Resolve and check the primary and secondary variable lists."""
    names2 = list(options.vars2) if options.vars2 is not None else []
    secondary = VariableSpec.from_lists(
        names2, options.var_names2, names_argument="vars2", labels_argument="var_names2"
    )

    if options.vars is not None:
        names = list(options.vars)
    else:
        excluded = set(secondary.names) | {options.strata}
        names = [c for c in dataset.columns if c not in excluded]
    primary = VariableSpec.from_lists(names, options.var_names)

    if len(primary) == 0:
        raise ValidationError("vars", "at least one variable is required")
    if options.cross_set and len(secondary) == 0:
        raise ValidationError("vars2", "at least one variable is required in cross-set mode")

    for argument, spec in (("vars", primary), ("vars2", secondary)):
        unknown = [name for name in spec.names if not dataset.has_column(name)]
        if unknown:
            raise ValidationError(argument, f"columns not found in data: {', '.join(unknown)}")

    primary_names = set(primary.names)
    overlap = [name for name in secondary.names if name in primary_names]
    if overlap:
        raise ValidationError("vars2", f"variables also listed in vars: {', '.join(overlap)}")

    return primary, secondary


def _validate_strata(
    dataset: Dataset, options: CorrelTableOptions, selected: VariableSpec
) -> tuple[Any, Any] | None:
    """Check the stratification variable and return its two levels."""
    if options.strata is None:
        return None

    strata = options.strata
    if not dataset.has_column(strata):
        raise ValidationError("strata", f"column not found in data: {strata}")

    levels = dataset.levels(strata)
    if len(levels) != 2:
        raise ValidationError(
            "strata", f"strata variable must have 2 levels, found {len(levels)}"
        )
    if strata in selected.names:
        raise ValidationError("strata", "strata variable should not also be in the variables list")

    counts = dataset.level_counts(strata)
    if counts.min() < config.min_sample_group:
        raise ValidationError(
            "strata",
            f"all levels of strata variable must have at least {config.min_sample_group} cases",
        )
    if options.cross_set:
        raise ValidationError("strata", "cannot combine strata and vars2")

    return levels[0], levels[1]


def compute_cells(
    dataset: Dataset, variables: Sequence[Variable], method: str = "pearson"
) -> np.ndarray:
    """Compute the statistic for every pair of variables.

    The variable kinds are fixed by the caller, so the same variables give a
    matrix of the same shape and order for any subset of rows.

    Args:
        dataset: Rows to analyse
        variables: Typed variables in table order
        method: Correlation method for numeric pairs

    Returns:
        Square object array of CorrelationCell, diagonal included

    """
    numeric_names = [v.name for v in variables if v.is_numeric]
    r = p = None
    if numeric_names:
        r, n = correlation_matrix(dataset.numeric_frame(numeric_names), method=method)
        p = pd.DataFrame(correlation_p_values(r, n), index=r.index, columns=r.columns)

    size = len(variables)
    cells = np.empty((size, size), dtype=object)
    for i, a in enumerate(variables):
        cells[i, i] = CorrelationCell(CellKind.DIAGONAL)
        for j in range(i + 1, size):
            cell = _pair_cell(dataset, a, variables[j], r, p)
            cells[i, j] = cell
            cells[j, i] = cell
    return cells


def _pair_cell(
    dataset: Dataset,
    a: Variable,
    b: Variable,
    r: pd.DataFrame | None,
    p: pd.DataFrame | None,
) -> CorrelationCell:
    """Dispatch on the pair's variable kinds."""
    kinds = (a.kind, b.kind)
    if kinds == (VariableKind.NUMERIC, VariableKind.NUMERIC):
        return CorrelationCell(
            CellKind.NUMERIC_NUMERIC,
            statistic=float(r.at[a.name, b.name]),
            p_value=float(p.at[a.name, b.name]),
        )
    if kinds == (VariableKind.CATEGORICAL, VariableKind.CATEGORICAL):
        statistic, p_value = chi_square_independence(dataset.column(a.name), dataset.column(b.name))
        return CorrelationCell(
            CellKind.CATEGORICAL_CATEGORICAL,
            statistic=statistic,
            p_value=p_value,
            label=config.label_chi_square,
        )

    numeric, categorical = (a, b) if a.is_numeric else (b, a)
    return _group_difference_cell(dataset, numeric, categorical)


def _group_difference_cell(
    dataset: Dataset, numeric: Variable, categorical: Variable
) -> CorrelationCell:
    """Welch t for two-level groups, one-way ANOVA F for three or more."""
    values = dataset.column(numeric.name)
    groups = dataset.column(categorical.name)

    if categorical.level_count == 2:
        statistic, p_value = welch_t_test(values, groups, categorical.levels)
        label = config.label_t
    elif categorical.level_count > 2:
        statistic, p_value = one_way_anova(values, groups, categorical.levels)
        label = config.label_f
    else:
        logger.debug(f"No group test for {numeric.name} by single-level {categorical.name}")
        return CorrelationCell(CellKind.NUMERIC_CATEGORICAL)

    return CorrelationCell(
        CellKind.NUMERIC_CATEGORICAL, statistic=statistic, p_value=p_value, label=label
    )


def _format_cells(cells: np.ndarray, round_n: int) -> np.ndarray:
    formatted = np.empty(cells.shape, dtype=object)
    for index, cell in np.ndenumerate(cells):
        formatted[index] = cell.format(round_n)
    return formatted


def _apply_triangle(matrix: np.ndarray, tri: str) -> np.ndarray:
    """Blank the cells outside the kept triangle (diagonal included)."""
    result = matrix.copy()
    if tri == "upper":
        result[np.tril_indices_from(result)] = config.blank
    elif tri == "lower":
        result[np.triu_indices_from(result)] = config.blank
    return result


def _stratified_matrix(
    dataset: Dataset,
    variables: Sequence[Variable],
    options: CorrelTableOptions,
    levels: tuple[Any, Any],
) -> np.ndarray:
    """Level 1 in the upper triangle, level 2 in the lower triangle."""
    strata = options.strata
    first = dataset.where_equal(strata, levels[0])
    second = dataset.where_equal(strata, levels[1])
    logger.debug(f"Strata {strata}: {levels[0]} n={first.n_rows}, {levels[1]} n={second.n_rows}")

    upper = _apply_triangle(
        _format_cells(compute_cells(first, variables, options.method), options.round_n), "upper"
    )
    lower = _apply_triangle(
        _format_cells(compute_cells(second, variables, options.method), options.round_n), "lower"
    )

    merged = upper.copy()
    below = np.tril_indices_from(merged, k=-1)
    merged[below] = lower[below]
    return merged


def _label_and_trim(
    matrix: np.ndarray,
    primary: VariableSpec,
    secondary: VariableSpec,
    options: CorrelTableOptions,
) -> pd.DataFrame:
    """Attach labels, cut the empty row/column, or slice the cross block."""
    labels = list(primary.labels + secondary.labels)

    if options.cross_set:
        k = len(primary)
        return pd.DataFrame(matrix[:k, k:], index=labels[:k], columns=labels[k:])

    if options.effective_colnum:
        rows = [f"{i}. {label}" for i, label in enumerate(labels, start=1)]
        columns = [str(i) for i in range(1, len(labels) + 1)]
    else:
        rows = list(labels)
        columns = list(labels)

    if options.effective_cutempty:
        if options.effective_tri == "upper":
            matrix, rows, columns = matrix[:-1, 1:], rows[:-1], columns[1:]
        else:
            matrix, rows, columns = matrix[1:, :-1], rows[1:], columns[:-1]

    return pd.DataFrame(matrix, index=rows, columns=columns)


def _threshold_text(threshold: float) -> str:
    text = f"{threshold:g}"
    return text[1:] if text.startswith("0.") else text


def significance_legend() -> str:
    """Star legend, loosest threshold first (``* p<.05, ** p<.01, ...``)."""
    levels = sorted(config.significance_levels, key=lambda level: level[0], reverse=True)
    return ", ".join(f"{stars} p<{_threshold_text(threshold)}" for threshold, stars in levels)


def _caption(
    options: CorrelTableOptions,
    variables: Sequence[Variable],
    missing: dict[str, int],
    n_rows: int,
    dropped: int,
    strata_levels: tuple[Any, Any] | None,
) -> str:
    """Describe method, missing-data handling, mixed-type tests and strata."""
    parts = [f"Note. This table presents {options.method.title()} correlation coefficients with"]

    if options.use == "complete":
        cases = f"N={n_rows}" + (f", missing {dropped} cases" if dropped > 0 else "")
        parts.append(f"list-wise deletion ({cases})")
    else:
        parts.append("pairwise deletion.")
        labels = {v.name: v.label for v in variables}
        parts.extend(
            f"N={count} missing {labels[name]}." for name, count in missing.items() if count > 0
        )

    if any(v.kind is VariableKind.CATEGORICAL for v in variables):
        parts.append(_GROUP_NOTE)

    if strata_levels is not None:
        parts.append(
            f"The data were split by {options.strata} (upper triangle = {strata_levels[0]}; "
            f"lower triangle = {strata_levels[1]})."
        )

    parts.append(significance_legend())
    return " ".join(parts)
