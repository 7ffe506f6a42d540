"""scitables - publication-ready statistical tables."""

from scitables.analysis import (
    CorrelTableOptions,
    CorrelTableResult,
    DataTypeWarning,
    RenderUnavailableWarning,
    ValidationError,
    build_correltable,
    correltable,
)

__version__ = "0.1.0"

__all__ = [
    "CorrelTableOptions",
    "CorrelTableResult",
    "DataTypeWarning",
    "RenderUnavailableWarning",
    "ValidationError",
    "__version__",
    "build_correltable",
    "correltable",
]
