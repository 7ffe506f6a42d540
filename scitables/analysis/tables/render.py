"""Table rendering.

Renders a formatted table with its caption as markdown, LaTeX (booktabs) or
HTML. HTML goes through pandas' Styler, which needs Jinja2; without it the
renderer warns and returns None so callers can fall back to plain output.
"""

from __future__ import annotations

import logging
import re
import warnings

import pandas as pd

from scitables.analysis.models import RenderUnavailableWarning

logger = logging.getLogger(__name__)

__all__ = ["render_html", "render_latex", "render_markdown"]

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
    "<": r"$<$",
    ">": r"$>$",
}
_STARS = re.compile(r"(\*+)")


def _md_escape(text: object) -> str:
    return str(text).replace("|", r"\|").replace("*", r"\*")


def _latex_escape(text: object) -> str:
    escaped = "".join(_LATEX_SPECIALS.get(ch, ch) for ch in str(text))
    escaped = _STARS.sub(r"$^{\1}$", escaped)
    return escaped.replace("χ2", r"$\chi^2$")


def render_markdown(table: pd.DataFrame, caption: str) -> str:
    """Render a table as a markdown pipe table followed by its caption.

    Args:
        table: Formatted cell strings with row and column labels
        caption: Table note

    Returns:
        Markdown text

    """
    header = ["", *[_md_escape(c) for c in table.columns]]
    md_lines = ["| " + " | ".join(header) + " |"]
    md_lines.append("|" + "|".join("---" for _ in header) + "|")

    for label, row in zip(table.index, table.itertuples(index=False), strict=True):
        cells = [_md_escape(label), *[_md_escape(value) for value in row]]
        md_lines.append("| " + " | ".join(cells) + " |")

    md_lines.extend(["", _md_escape(caption)])
    return "\n".join(md_lines)


def render_latex(table: pd.DataFrame, caption: str, label: str = "tab:correlations") -> str:
    """Render a table as a booktabs LaTeX table environment.

    Stars become superscripts and ``χ2`` becomes ``$\\chi^2$``.

    Args:
        table: Formatted cell strings with row and column labels
        caption: Table note
        label: LaTeX label for cross-references

    Returns:
        LaTeX source

    """
    column_spec = "l" + "c" * len(table.columns)
    latex_lines = [
        r"\begin{table}[htbp]",
        r"\centering",
        rf"\caption{{{_latex_escape(caption)}}}",
        rf"\label{{{label}}}",
        rf"\begin{{tabular}}{{{column_spec}}}",
        r"\toprule",
        " & ".join(["", *[_latex_escape(c) for c in table.columns]]) + r" \\",
        r"\midrule",
    ]

    for row_label, row in zip(table.index, table.itertuples(index=False), strict=True):
        cells = [_latex_escape(row_label), *[_latex_escape(value) for value in row]]
        latex_lines.append(" & ".join(cells) + r" \\")

    latex_lines.extend([r"\bottomrule", r"\end{tabular}", r"\end{table}"])
    return "\n".join(latex_lines)


def render_html(table: pd.DataFrame, caption: str) -> str | None:
    """Render a table as HTML with the caption below it.

    Args:
        table: Formatted cell strings with row and column labels
        caption: Table note

    Returns:
        HTML markup, or None if Jinja2 is not installed

    """
    try:
        styler = table.style
    except ImportError as e:
        logger.warning(f"HTML rendering unavailable: {e}")
        warnings.warn(
            "Jinja2 is needed for HTML output; install scitables[html]. "
            "Returning the plain table instead.",
            RenderUnavailableWarning,
            stacklevel=2,
        )
        return None

    return (
        styler.set_caption(caption)
        .set_table_styles([{"selector": "caption", "props": "caption-side: bottom;"}])
        .to_html()
    )
