"""Dataset access and variable selection.

Wraps the input table in a read-only ``Dataset`` and resolves the selected
columns into typed ``Variable`` records (numeric, or categorical with its
observed levels) once, before any statistic is computed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from scitables.analysis.models import ValidationError

logger = logging.getLogger(__name__)

__all__ = ["Dataset", "Variable", "VariableKind", "VariableSpec"]


class VariableKind(str, Enum):
    """Measurement type of a selected variable."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


@dataclass(frozen=True)
class Variable:
    """A selected column with its display label and resolved type.

    Attributes:
        name: Column name in the dataset.
        label: Display label for table headers.
        kind: Numeric or categorical.
        levels: Observed levels in order (categorical only).

    """

    name: str
    label: str
    kind: VariableKind
    levels: tuple[Any, ...] = ()

    @property
    def is_numeric(self) -> bool:
        """Whether the variable is numeric."""
        return self.kind is VariableKind.NUMERIC

    @property
    def level_count(self) -> int:
        """Number of observed levels (0 for numeric variables)."""
        return len(self.levels)


@dataclass(frozen=True)
class VariableSpec:
    """Ordered, de-duplicated column names with their display labels."""

    names: tuple[str, ...]
    labels: tuple[str, ...]

    @classmethod
    def from_lists(
        cls,
        names: Sequence[str],
        labels: Sequence[str] | None = None,
        names_argument: str = "vars",
        labels_argument: str = "var_names",
    ) -> VariableSpec:
        """Build a spec, checking label count and dropping repeated names.

        Args:
            names: Column names in display order
            labels: Display labels, one per name (default: the names)
            names_argument: Option name reported for name errors
            labels_argument: Option name reported for label errors

        Returns:
            VariableSpec keeping the first occurrence of each name

        Raises:
            ValidationError: If labels and names differ in length.

        """
        if labels is None:
            labels = names
        if len(labels) != len(names):
            raise ValidationError(
                labels_argument,
                f"length of {labels_argument} ({len(labels)}) does not match "
                f"length of {names_argument} ({len(names)})",
            )

        seen: set[str] = set()
        kept_names: list[str] = []
        kept_labels: list[str] = []
        for name, label in zip(names, labels, strict=True):
            if name in seen:
                continue
            seen.add(name)
            kept_names.append(name)
            kept_labels.append(label)

        if len(kept_names) < len(names):
            logger.debug(f"Dropped {len(names) - len(kept_names)} repeated {names_argument}")

        return cls(tuple(kept_names), tuple(kept_labels))

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(zip(self.names, self.labels, strict=True))

    def __add__(self, other: VariableSpec) -> VariableSpec:
        return VariableSpec(self.names + other.names, self.labels + other.labels)


def _observed_levels(series: pd.Series) -> tuple[Any, ...]:
    """Distinct non-missing values in level order.

    Categorical columns keep their category order; other columns are sorted
    by value, or by their string form when the values are not comparable.
    """
    observed = series.dropna()
    if isinstance(series.dtype, pd.CategoricalDtype):
        present = set(observed.unique())
        return tuple(c for c in series.cat.categories if c in present)
    values = list(observed.unique())
    try:
        return tuple(sorted(values))
    except TypeError:
        return tuple(sorted(values, key=str))


class Dataset:
    """Read-only tabular dataset of named columns.

    The input is copied on construction; accessors return copies, so the
    caller's frame is never modified.
    """

    def __init__(self, data: pd.DataFrame | dict[str, Sequence[Any]]) -> None:
        """Copy the input into an owned DataFrame."""
        self._frame = pd.DataFrame(data).copy()

    @property
    def columns(self) -> list[str]:
        """Column names in order."""
        return list(self._frame.columns)

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return len(self._frame)

    def has_column(self, name: str) -> bool:
        """Whether a column exists."""
        return name in self._frame.columns

    def column(self, name: str) -> pd.Series:
        """Column values, with categorical dtypes converted to plain objects."""
        series = self._frame[name]
        if isinstance(series.dtype, pd.CategoricalDtype):
            return series.astype(object)
        return series.copy()

    def is_numeric(self, name: str) -> bool:
        """Whether a column holds numbers (booleans count as categorical)."""
        dtype = self._frame[name].dtype
        return is_numeric_dtype(dtype) and not is_bool_dtype(dtype)

    def is_declared_categorical(self, name: str) -> bool:
        """Whether a column already has a category or boolean dtype."""
        dtype = self._frame[name].dtype
        return isinstance(dtype, pd.CategoricalDtype) or is_bool_dtype(dtype)

    def levels(self, name: str) -> tuple[Any, ...]:
        """Observed levels of a column."""
        return _observed_levels(self._frame[name])

    def level_counts(self, name: str) -> pd.Series:
        """Observation count per observed level, in level order."""
        series = self.column(name)
        return series.value_counts().reindex(list(self.levels(name)), fill_value=0)

    def missing_counts(self, names: Sequence[str]) -> dict[str, int]:
        """Number of missing values per column."""
        missing = self._frame[list(names)].isna().sum()
        return {name: int(missing[name]) for name in names}

    def complete_cases(self, names: Sequence[str]) -> tuple[Dataset, int]:
        """Drop rows missing any of the given columns.

        Returns:
            Tuple of (filtered dataset, number of dropped rows)

        """
        mask = self._frame[list(names)].notna().all(axis=1)
        dropped = int((~mask).sum())
        return self._subset(mask.to_numpy()), dropped

    def where_equal(self, name: str, level: Any) -> Dataset:
        """Rows whose column equals a level (missing values excluded)."""
        series = self.column(name)
        mask = (series == level) & series.notna()
        return self._subset(mask.to_numpy())

    def numeric_frame(self, names: Sequence[str]) -> pd.DataFrame:
        """Selected numeric columns as float64, missing values as NaN."""
        return self._frame[list(names)].astype(np.float64)

    def resolve(self, spec: VariableSpec) -> list[Variable]:
        """Type each selected column as numeric or categorical.

        Args:
            spec: Selected names and labels

        Returns:
            Variables in spec order

        """
        variables = []
        for name, label in spec:
            if self.is_numeric(name):
                variables.append(Variable(name, label, VariableKind.NUMERIC))
            else:
                variables.append(
                    Variable(name, label, VariableKind.CATEGORICAL, self.levels(name))
                )
        return variables

    def _subset(self, mask: np.ndarray) -> Dataset:
        return Dataset(self._frame.loc[mask].reset_index(drop=True))

    def __len__(self) -> int:
        return self.n_rows
