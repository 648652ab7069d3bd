"""
Text measurement and word wrapping.

Widths come from reportlab's metrics for the standard Type 1 fonts, so
measurement needs no font files and gives identical results everywhere.
"""

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

ELLIPSIS = "..."


def text_width(text: str, font: str, size: float) -> float:
    return stringWidth(text, font, size)


def wrap_text(text: str | None, font: str, size: float, max_width: float) -> list[str]:
    """
    Split text into lines no wider than ``max_width``.

    Explicit newlines are kept; blank lines survive as empty strings.
    A single word wider than the limit stays on its own line.
    """
    if not text:
        return []
    lines: list[str] = []
    for paragraph in text.replace("\r\n", "\n").split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        lines.extend(simpleSplit(paragraph, font, size, max_width))
    # Trailing blank lines only push later zones down
    while lines and not lines[-1]:
        lines.pop()
    return lines


def truncate_lines(lines: list[str], max_lines: int, font: str, size: float, max_width: float) -> list[str]:
    """Keep at most ``max_lines`` lines, marking the cut with an ellipsis."""
    if len(lines) <= max_lines:
        return lines
    kept = lines[:max_lines]
    last = kept[-1]
    while last and text_width(last + ELLIPSIS, font, size) > max_width:
        last = last[:-1]
    kept[-1] = last + ELLIPSIS
    return kept
