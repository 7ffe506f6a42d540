"""Publication table generation.

This package provides table builders and renderers for research papers,
organized by table purpose:

- correlation: Correlation matrix with significance stars
- render: Markdown, LaTeX and HTML output
"""

from __future__ import annotations

from scitables.analysis.tables.correlation import (
    build_correltable,
    compute_cells,
    correltable,
    significance_legend,
)
from scitables.analysis.tables.render import (
    render_html,
    render_latex,
    render_markdown,
)

__all__ = [
    # Builders
    "build_correltable",
    "compute_cells",
    "correltable",
    "significance_legend",
    # Renderers
    "render_html",
    "render_latex",
    "render_markdown",
]
