"""
Draw instructions produced by the layout engine.

A page is an ordered list of primitives with absolute coordinates in PDF
points. The origin is the top-left corner of the page and y grows
downwards; text positions are baselines. Instructions are drawn in list
order, so earlier instructions sit behind later ones.

Both the preview sink and the PDF file sink consume exactly these
values, which keeps the on-screen and exported output identical.
"""

import json
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from billforge.domain.hashing import compute_content_hash

Color = tuple[int, int, int]
Align = Literal["left", "center", "right"]
Point = tuple[float, float]


def _r(value: float) -> float:
    """Round coordinates so serialized output is stable and readable."""
    return round(value, 3)


@dataclass(frozen=True)
class TextRun:
    """A single line of text anchored at (x, y) according to ``align``."""
    x: float
    y: float
    text: str
    font: str
    size: float
    color: Color
    align: Align = "left"
    opacity: float = 1.0
    angle: float = 0.0  # Degrees, counter-clockwise

    kind = "text"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "x": _r(self.x),
            "y": _r(self.y),
            "text": self.text,
            "font": self.font,
            "size": self.size,
            "color": list(self.color),
            "align": self.align,
            "opacity": self.opacity,
            "angle": self.angle,
        }


@dataclass(frozen=True)
class ImageBox:
    """A raster image scaled into the box whose top-left corner is (x, y)."""
    x: float
    y: float
    width: float
    height: float
    data: bytes
    digest: str

    kind = "image"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "x": _r(self.x),
            "y": _r(self.y),
            "width": _r(self.width),
            "height": _r(self.height),
            "digest": self.digest,
        }


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle with top-left corner (x, y)."""
    x: float
    y: float
    width: float
    height: float
    fill: Color | None = None
    stroke: Color | None = None
    opacity: float = 1.0

    kind = "rect"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "x": _r(self.x),
            "y": _r(self.y),
            "width": _r(self.width),
            "height": _r(self.height),
            "fill": list(self.fill) if self.fill else None,
            "stroke": list(self.stroke) if self.stroke else None,
            "opacity": self.opacity,
        }


@dataclass(frozen=True)
class Polyline:
    """
    A sequence of connected points.

    Two points make a rule; a closed polyline with a fill makes a shape.
    """
    points: tuple[Point, ...]
    stroke: Color | None = None
    fill: Color | None = None
    line_width: float = 0.5
    opacity: float = 1.0
    closed: bool = False

    kind = "polyline"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "points": [[_r(x), _r(y)] for x, y in self.points],
            "stroke": list(self.stroke) if self.stroke else None,
            "fill": list(self.fill) if self.fill else None,
            "line_width": self.line_width,
            "opacity": self.opacity,
            "closed": self.closed,
        }

    @property
    def min_y(self) -> float:
        return min(y for _, y in self.points)


DrawInstruction = TextRun | ImageBox | Rect | Polyline


@dataclass(frozen=True)
class Page:
    """One fixed-size page: its size and the instructions drawn on it."""
    number: int
    width: float
    height: float
    instructions: tuple[DrawInstruction, ...]

    def __iter__(self) -> Iterator[DrawInstruction]:
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    def text_runs(self) -> list[TextRun]:
        return [i for i in self.instructions if isinstance(i, TextRun)]

    def texts(self) -> list[str]:
        """Text content of the page in draw order."""
        return [i.text for i in self.instructions if isinstance(i, TextRun)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "width": _r(self.width),
            "height": _r(self.height),
            "instructions": [i.to_dict() for i in self.instructions],
        }


def serialize_pages(pages: Sequence[Page]) -> bytes:
    """Canonical JSON encoding of a page list."""
    payload = [page.to_dict() for page in pages]
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def layout_fingerprint(pages: Sequence[Page]) -> str:
    """SHA-256 of the canonical encoding; equal layouts give equal fingerprints."""
    return compute_content_hash(serialize_pages(pages))
