"""
Layout subpackage - Deterministic page layout for billing documents.
"""

from .engine import LayoutEngine, render_pages
from .primitives import DrawInstruction, ImageBox, Page, Polyline, Rect, TextRun, layout_fingerprint, serialize_pages

__all__ = [
    "LayoutEngine",
    "render_pages",
    "Page",
    "DrawInstruction",
    "TextRun",
    "ImageBox",
    "Rect",
    "Polyline",
    "layout_fingerprint",
    "serialize_pages",
]
