"""Statistical analysis for publication tables.

This module provides dataset access, statistical primitives, and table
generation for scientific publication.
"""

from scitables.analysis.dataset import Dataset, Variable, VariableKind, VariableSpec
from scitables.analysis.models import (
    CellKind,
    CorrelationCell,
    CorrelTableOptions,
    CorrelTableResult,
    DataTypeWarning,
    Diagnostic,
    DiagnosticKind,
    RenderUnavailableWarning,
    ValidationError,
)
from scitables.analysis.tables import build_correltable, correltable

__all__ = [
    "CellKind",
    "CorrelTableOptions",
    "CorrelTableResult",
    "CorrelationCell",
    "DataTypeWarning",
    "Dataset",
    "Diagnostic",
    "DiagnosticKind",
    "RenderUnavailableWarning",
    "ValidationError",
    "Variable",
    "VariableKind",
    "VariableSpec",
    "build_correltable",
    "correltable",
]
