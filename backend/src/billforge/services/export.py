"""
Export sinks for laid-out pages.

A sink takes the finished page list and either hands it to a viewer for
preview or writes it to a file named ``<KIND>_<number>.pdf``. Both
paths draw the same instructions through the same PDF renderer.

Design Decisions:
- Abstract sink interface so preview, file and in-memory export share code
- reportlab ``invariant`` mode so identical pages give identical PDF bytes
- Files are written atomically (temp file, then rename)
- Failures surface as ExportError; sinks never retry
"""

import io
import logging
import re
import tempfile
import webbrowser
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from billforge.config import get_settings
from billforge.domain.errors import ExportError
from billforge.domain.hashing import compute_content_hash
from billforge.domain.models import Document
from billforge.layout.primitives import ImageBox, Page, Polyline, Rect, TextRun

logger = logging.getLogger(__name__)


PDF_CONTENT_TYPE = "application/pdf"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ExportResult:
    """Metadata for an exported artifact."""
    filename: str
    size_bytes: int
    content_hash: str
    content_type: str = PDF_CONTENT_TYPE
    path: Path | None = None
    content: bytes | None = None


def export_filename(document: Document, extension: str = "pdf") -> str:
    """File name ``<KIND>_<number>.<ext>`` with path-unsafe characters replaced."""
    stem = f"{document.kind.value}_{document.number}"
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', stem)}.{extension}"


def _rgb(color: tuple[int, int, int]) -> tuple[float, float, float]:
    r, g, b = color
    return r / 255, g / 255, b / 255


def _draw_text(pdf: canvas.Canvas, item: TextRun, page_height: float) -> None:
    pdf.saveState()
    pdf.setFont(item.font, item.size)
    pdf.setFillColorRGB(*_rgb(item.color))
    pdf.setFillAlpha(item.opacity)
    pdf.translate(item.x, page_height - item.y)
    if item.angle:
        pdf.rotate(item.angle)
    if item.align == "right":
        pdf.drawRightString(0, 0, item.text)
    elif item.align == "center":
        pdf.drawCentredString(0, 0, item.text)
    else:
        pdf.drawString(0, 0, item.text)
    pdf.restoreState()


def _draw_shape(pdf: canvas.Canvas, item: Rect | Polyline, page_height: float) -> None:
    pdf.saveState()
    if item.fill:
        pdf.setFillColorRGB(*_rgb(item.fill))
        pdf.setFillAlpha(item.opacity)
    if item.stroke:
        pdf.setStrokeColorRGB(*_rgb(item.stroke))
        pdf.setStrokeAlpha(item.opacity)

    if isinstance(item, Rect):
        pdf.rect(
            item.x, page_height - item.y - item.height, item.width, item.height,
            stroke=int(item.stroke is not None), fill=int(item.fill is not None),
        )
    else:
        pdf.setLineWidth(item.line_width)
        path = pdf.beginPath()
        (x0, y0), *rest = item.points
        path.moveTo(x0, page_height - y0)
        for x, y in rest:
            path.lineTo(x, page_height - y)
        if item.closed:
            path.close()
        pdf.drawPath(path, stroke=int(item.stroke is not None), fill=int(item.fill is not None))
    pdf.restoreState()


def render_pdf(pages: Sequence[Page], title: str = "") -> bytes:
    """
    Draw pages into a PDF document.

    Args:
        pages: Laid-out pages from the layout engine
        title: PDF metadata title

    Returns:
        PDF file content

    Raises:
        ExportError: If there is nothing to draw or reportlab fails
    """
    if not pages:
        raise ExportError("Cannot export a document with no pages")

    buffer = io.BytesIO()
    first = pages[0]
    try:
        pdf = canvas.Canvas(buffer, pagesize=(first.width, first.height), invariant=1)
        if title:
            pdf.setTitle(title)
        for page in pages:
            pdf.setPageSize((page.width, page.height))
            for item in page:
                if isinstance(item, TextRun):
                    _draw_text(pdf, item, page.height)
                elif isinstance(item, ImageBox):
                    pdf.drawImage(
                        ImageReader(io.BytesIO(item.data)),
                        item.x, page.height - item.y - item.height, item.width, item.height,
                        mask="auto",
                    )
                else:
                    _draw_shape(pdf, item, page.height)
            pdf.showPage()
        pdf.save()
    except Exception as e:
        raise ExportError(f"PDF rendering failed: {e}") from e

    return buffer.getvalue()


class ExportSink(ABC):
    """Abstract interface for export destinations."""

    @abstractmethod
    async def export(self, pages: Sequence[Page], document: Document) -> ExportResult:
        """Export rendered pages of a document and return artifact metadata."""
        pass


class MemorySink(ExportSink):
    """Renders to bytes and returns them in the result (used for downloads)."""

    async def export(self, pages: Sequence[Page], document: Document) -> ExportResult:
        content = render_pdf(pages, title=f"{document.kind.label} {document.number}")
        return ExportResult(
            filename=export_filename(document),
            size_bytes=len(content),
            content_hash=compute_content_hash(content),
            content=content,
        )


class PdfFileSink(ExportSink):
    """
    Writes PDFs into a directory.

    storage_path/
        INVOICE_INV-4821.pdf
        QUOTATION_QT-1093.pdf
    """

    def __init__(self, base_path: Path | None = None) -> None:
        """
        Initialize file export.

        Args:
            base_path: Target directory. Uses config if None.
        """
        settings = get_settings()
        self.base_path = base_path or settings.export_path

    async def export(self, pages: Sequence[Page], document: Document) -> ExportResult:
        content = render_pdf(pages, title=f"{document.kind.label} {document.number}")
        filename = export_filename(document)
        file_path = self.base_path / filename

        # Write atomically (write to temp, then rename)
        temp_path = file_path.with_suffix(".tmp")
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            temp_path.write_bytes(content)
            temp_path.replace(file_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise ExportError(f"Could not write {file_path}: {e}", path=str(file_path)) from e

        logger.info(f"Exported {filename} ({len(content)} bytes) to {self.base_path}")
        return ExportResult(
            filename=filename,
            size_bytes=len(content),
            content_hash=compute_content_hash(content),
            path=file_path,
        )


Viewer = Callable[[bytes, str], None]


def open_in_browser(content: bytes, filename: str) -> None:
    """Default viewer: write a temporary file and open it with the system browser."""
    with tempfile.NamedTemporaryFile(prefix="billforge-", suffix=f"-{filename}", delete=False) as handle:
        handle.write(content)
    if not webbrowser.open(Path(handle.name).as_uri()):
        raise OSError("No browser available to display the document")


class PreviewSink(ExportSink):
    """Hands the rendered PDF to a viewer for ephemeral display."""

    def __init__(self, viewer: Viewer = open_in_browser) -> None:
        self.viewer = viewer

    async def export(self, pages: Sequence[Page], document: Document) -> ExportResult:
        content = render_pdf(pages, title=f"{document.kind.label} {document.number}")
        filename = export_filename(document)
        try:
            self.viewer(content, filename)
        except Exception as e:
            raise ExportError(f"Preview of {filename} failed: {e}") from e

        logger.info(f"Opened preview of {filename}")
        return ExportResult(
            filename=filename,
            size_bytes=len(content),
            content_hash=compute_content_hash(content),
        )
