"""
Paginated layout of quotations and invoices.

Turns a committed Document and the BusinessProfile into fixed-size pages
of absolutely positioned draw instructions. Layout is a top-to-bottom
flow with a manual cursor: each zone starts at the previous zone's bottom
plus a fixed gap, and a zone that does not fit continues on a new page.

Zones, in order:
1. Header band - logo, business identity, document kind/number/dates
2. Party band - Bill To
3. Item table - header row repeated on every page, rows never split
4. Summary block - subtotal, tax, grand total (PAID watermark behind it)
5. Notes/terms and payment details
6. Footer on every page - waves, branding, "Page X of N"

Design Decisions:
- Two passes: content is laid out first, the footer is stamped once the
  final page count is known
- The footer band is reserved on every page so the waves never overlap
  content
- Output depends only on the inputs (no clock, no randomness), so the
  same document renders to identical instructions every time
- A bad logo is logged and skipped; it never aborts rendering
"""

import logging
import math
from dataclasses import dataclass

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm

from billforge.domain.errors import RenderAssetError
from billforge.domain.formatting import format_date, format_money, format_percentage, format_quantity
from billforge.domain.models import BusinessProfile, Document, DocumentStatus, LineItem
from billforge.domain.totals import document_totals, effective_tax_percentage, line_total

from .images import LogoAsset, fit_within, load_logo
from .primitives import Color, DrawInstruction, ImageBox, Page, Point, Polyline, Rect, TextRun
from .text import FONT_BOLD, FONT_REGULAR, truncate_lines, wrap_text

logger = logging.getLogger(__name__)


# Palette
ACCENT: Color = (37, 99, 235)
LIGHT_BLUE: Color = (191, 219, 254)
DEEP_BLUE: Color = (30, 58, 138)
INK: Color = (15, 23, 42)
MUTED: Color = (100, 116, 139)
RULE: Color = (241, 245, 249)
HEADER_FILL: Color = (248, 250, 252)
PAID_GREEN: Color = (16, 185, 129)

MARGIN = 20 * mm
FOOTER_BAND = 42 * mm  # Reserved at the bottom of every page
TOP_BAR_HEIGHT = 2 * mm

# Header
LOGO_MAX_WIDTH = 45 * mm
LOGO_MAX_HEIGHT = 20 * mm
LOGO_GAP = 5 * mm
NO_LOGO_OFFSET = 10 * mm
LEFT_COLUMN_WIDTH = 95 * mm
ADDRESS_WIDTH = 75 * mm
MAX_ADDRESS_LINES = 6
MAX_NAME_LINES = 2
HEADER_GAP = 10 * mm

# Item table
QTY_WIDTH = 20 * mm
PRICE_WIDTH = 45 * mm
TOTAL_WIDTH = 45 * mm
CELL_PAD_X = 3 * mm
CELL_PAD_Y = 3 * mm
TABLE_FONT_SIZE = 9
TABLE_LEADING = 4.5 * mm
TABLE_GAP = 10 * mm

# Summary
SUMMARY_GAP = 15 * mm
SUMMARY_HEIGHT = 24 * mm
SUMMARY_LABEL_OFFSET = 90 * mm

# Notes
NOTES_GAP = 12 * mm
BLOCK_GAP = 8 * mm
HEADING_LEADING = 5 * mm
NOTES_LEADING = 4 * mm

WAVE_STEPS = 24


@dataclass(frozen=True)
class _Column:
    title: str
    x: float
    width: float
    align: str

    @property
    def anchor(self) -> float:
        """X coordinate text is anchored to for this column's alignment."""
        if self.align == "center":
            return self.x + self.width / 2
        if self.align == "right":
            return self.x + self.width - CELL_PAD_X
        return self.x + CELL_PAD_X


@dataclass(frozen=True)
class _TableRow:
    description: list[str]
    quantity: str
    unit_price: str
    total: str
    height: float


class _Flow:
    """Pages under construction and the vertical cursor on the current one."""

    def __init__(self, top: float, bottom: float) -> None:
        self.top = top
        self.bottom = bottom
        self.pages: list[list[DrawInstruction]] = [[]]
        self.y = top

    def add(self, *instructions: DrawInstruction) -> None:
        self.pages[-1].extend(instructions)

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom

    def new_page(self) -> None:
        self.pages.append([])
        self.y = self.top


def _cubic_bezier(p0: Point, p1: Point, p2: Point, p3: Point, steps: int) -> list[Point]:
    """Points along a cubic Bezier curve, excluding p0."""
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        mt = 1 - t
        x = mt**3 * p0[0] + 3 * mt**2 * t * p1[0] + 3 * mt * t**2 * p2[0] + t**3 * p3[0]
        y = mt**3 * p0[1] + 3 * mt**2 * t * p1[1] + 3 * mt * t**2 * p2[1] + t**3 * p3[1]
        points.append((x, y))
    return points


class LayoutEngine:
    """
    Lays out documents onto fixed-size portrait pages.

    Example:
        engine = LayoutEngine()
        pages = engine.render(document, profile)
        for page in pages:
            for instruction in page:
                ...
    """

    def __init__(self, page_size: tuple[float, float] = A4) -> None:
        self.page_width, self.page_height = page_size
        self.content_width = self.page_width - 2 * MARGIN
        self.content_top = MARGIN
        self.content_bottom = self.page_height - FOOTER_BAND

        description_width = self.content_width - QTY_WIDTH - PRICE_WIDTH - TOTAL_WIDTH
        x = MARGIN
        self.columns: list[_Column] = []
        for title, width, align in (
            ("DESCRIPTION", description_width, "left"),
            ("QTY", QTY_WIDTH, "center"),
            ("UNIT PRICE", PRICE_WIDTH, "right"),
            ("TOTAL", TOTAL_WIDTH, "right"),
        ):
            self.columns.append(_Column(title, x, width, align))
            x += width

        # Tallest row that still fits under a repeated header on an empty page
        usable = self.content_bottom - self.content_top - self.row_height(1)
        self.max_row_lines = max(1, math.floor((usable - 2 * CELL_PAD_Y) / TABLE_LEADING))

    # ------------------------------------------------------------------ public

    def render(self, document: Document, profile: BusinessProfile) -> list[Page]:
        """
        Lay out a document.

        Args:
            document: The committed document to print
            profile: The issuing business (branding, currency, tax rate)

        Returns:
            Pages in print order, each with its footer stamped
        """
        flow = _Flow(self.content_top, self.content_bottom)

        self._header(flow, document, profile, self._load_logo(profile))
        self._party(flow, document)
        self._item_table(flow, document.items, profile.currency_code)
        self._summary(flow, document, profile)
        self._notes(flow, document, profile)

        pages = self._stamp_footers(flow.pages, profile)
        logger.debug(f"Rendered {document.number}: {len(pages)} page(s)")
        return pages

    @staticmethod
    def row_height(line_count: int) -> float:
        """Height of a table row holding ``line_count`` lines of text."""
        return 2 * CELL_PAD_Y + line_count * TABLE_LEADING

    # ----------------------------------------------------------------- helpers

    @staticmethod
    def _baseline(top: float, leading: float) -> float:
        """Baseline of a text line whose line box starts at ``top``."""
        return top + leading * 0.75

    def _load_logo(self, profile: BusinessProfile) -> LogoAsset | None:
        try:
            return load_logo(profile.logo_image)
        except RenderAssetError as e:
            logger.warning(f"Skipping logo for {profile.name}: {e.message}")
            return None

    def _text_line(
        self,
        flow: _Flow,
        text: str,
        font: str,
        size: float,
        color: Color,
        leading: float,
    ) -> None:
        """
        Place one left-aligned line at the cursor, breaking the page if needed.

        A blank line only advances the cursor.
        """
        if not text:
            flow.y += leading
            return
        if not flow.fits(leading):
            flow.new_page()
        flow.add(TextRun(MARGIN, self._baseline(flow.y, leading), text, font, size, color))
        flow.y += leading

    # ------------------------------------------------------------------- zones

    def _header(
        self,
        flow: _Flow,
        document: Document,
        profile: BusinessProfile,
        logo: LogoAsset | None,
    ) -> None:
        y = flow.y
        if logo is not None:
            width, height = fit_within(logo.width, logo.height, LOGO_MAX_WIDTH, LOGO_MAX_HEIGHT)
            flow.add(ImageBox(MARGIN, y, width, height, logo.data, logo.digest))
            y += height + LOGO_GAP
        else:
            y += NO_LOGO_OFFSET

        # Right column: kind, number, dates
        right = self.page_width - MARGIN
        meta_y = max(self.content_top, y - 20 * mm)
        flow.add(
            TextRun(right, meta_y + 5 * mm, document.kind.value, FONT_BOLD, 28, ACCENT, "right"),
            TextRun(right, meta_y + 12 * mm, f"NO: {document.number}", FONT_BOLD, 10, INK, "right"),
            TextRun(
                right, meta_y + 18 * mm, f"Issue Date: {format_date(document.issue_date)}",
                FONT_REGULAR, 9, MUTED, "right",
            ),
            TextRun(
                right, meta_y + 23 * mm, f"Due Date: {format_date(document.due_date)}",
                FONT_REGULAR, 9, MUTED, "right",
            ),
        )
        right_bottom = meta_y + 30 * mm

        # Left column: business identity
        baseline = y + 5 * mm
        last = baseline
        name_lines = wrap_text(profile.name.upper(), FONT_BOLD, 18, LEFT_COLUMN_WIDTH)
        for line in truncate_lines(name_lines, MAX_NAME_LINES, FONT_BOLD, 18, LEFT_COLUMN_WIDTH):
            flow.add(TextRun(MARGIN, baseline, line, FONT_BOLD, 18, INK))
            last = baseline
            baseline += 7 * mm

        address = wrap_text(profile.address, FONT_REGULAR, 9, ADDRESS_WIDTH)
        address = truncate_lines(address, MAX_ADDRESS_LINES, FONT_REGULAR, 9, ADDRESS_WIDTH)
        contacts = [
            (f"Email: {profile.email}", FONT_REGULAR, MUTED) if profile.email else None,
            (f"Phone: {profile.phone}", FONT_REGULAR, MUTED) if profile.phone else None,
            (f"TAX ID: {profile.tax_id}", FONT_BOLD, INK) if profile.tax_id else None,
        ]
        lines = [(line, FONT_REGULAR, MUTED) for line in address]
        lines += [contact for contact in contacts if contact]
        for text, font, color in lines:
            if text:
                flow.add(TextRun(MARGIN, baseline, text, font, 9, color))
            last = baseline
            baseline += 5 * mm

        bottom = max(right_bottom, last) + HEADER_GAP
        flow.add(Polyline(((MARGIN, bottom), (self.page_width - MARGIN, bottom)), stroke=RULE))
        flow.y = bottom

    def _party(self, flow: _Flow, document: Document) -> None:
        baseline = flow.y + 10 * mm
        flow.add(TextRun(MARGIN, baseline, "BILL TO", FONT_BOLD, 10, INK))

        name_lines = wrap_text(document.client_name, FONT_BOLD, 12, self.content_width)
        name_lines = truncate_lines(name_lines, MAX_NAME_LINES, FONT_BOLD, 12, self.content_width)
        for index, line in enumerate(name_lines):
            baseline += 7 * mm if index == 0 else 5 * mm
            flow.add(TextRun(MARGIN, baseline, line, FONT_BOLD, 12, INK))

        if document.client_email:
            baseline += 6 * mm
            flow.add(TextRun(MARGIN, baseline, document.client_email, FONT_REGULAR, 9, MUTED))

        flow.y = baseline + TABLE_GAP

    def _prepare_row(self, item: LineItem, currency_code: str) -> _TableRow:
        width = self.columns[0].width - 2 * CELL_PAD_X
        lines = wrap_text(item.description, FONT_REGULAR, TABLE_FONT_SIZE, width) or [""]
        lines = truncate_lines(lines, self.max_row_lines, FONT_REGULAR, TABLE_FONT_SIZE, width)
        return _TableRow(
            description=lines,
            quantity=format_quantity(item.quantity),
            unit_price=format_money(item.unit_price, currency_code),
            total=format_money(line_total(item), currency_code),
            height=self.row_height(len(lines)),
        )

    def _table_header(self, flow: _Flow) -> None:
        height = self.row_height(1)
        flow.add(Rect(MARGIN, flow.y, self.content_width, height, fill=HEADER_FILL))
        baseline = self._baseline(flow.y + CELL_PAD_Y, TABLE_LEADING)
        for column in self.columns:
            flow.add(TextRun(
                column.anchor, baseline, column.title, FONT_BOLD, TABLE_FONT_SIZE, INK, column.align,
            ))
        flow.y += height

    def _table_row(self, flow: _Flow, row: _TableRow) -> None:
        description, quantity, unit_price, total = self.columns
        top = flow.y + CELL_PAD_Y
        for index, line in enumerate(row.description):
            if not line:
                continue
            flow.add(TextRun(
                description.anchor, self._baseline(top + index * TABLE_LEADING, TABLE_LEADING),
                line, FONT_REGULAR, TABLE_FONT_SIZE, INK,
            ))
        baseline = self._baseline(top, TABLE_LEADING)
        flow.add(
            TextRun(quantity.anchor, baseline, row.quantity, FONT_REGULAR, TABLE_FONT_SIZE, INK, "center"),
            TextRun(unit_price.anchor, baseline, row.unit_price, FONT_REGULAR, TABLE_FONT_SIZE, INK, "right"),
            TextRun(total.anchor, baseline, row.total, FONT_BOLD, TABLE_FONT_SIZE, INK, "right"),
        )
        flow.y += row.height
        flow.add(Polyline(((MARGIN, flow.y), (self.page_width - MARGIN, flow.y)), stroke=RULE))

    def _item_table(self, flow: _Flow, items: list[LineItem], currency_code: str) -> None:
        rows = [self._prepare_row(item, currency_code) for item in items]
        header_height = self.row_height(1)

        # Never leave a header stranded without its first row
        first_row = rows[0].height if rows else 0
        if not flow.fits(header_height + first_row):
            flow.new_page()
        self._table_header(flow)

        for row in rows:
            if not flow.fits(row.height):
                flow.new_page()
                self._table_header(flow)
            self._table_row(flow, row)

    def _summary(self, flow: _Flow, document: Document, profile: BusinessProfile) -> None:
        totals = document_totals(document, profile)
        rate = effective_tax_percentage(document, profile)
        currency = profile.currency_code

        if not flow.fits(SUMMARY_GAP + SUMMARY_HEIGHT):
            flow.new_page()
        y = flow.y + SUMMARY_GAP

        if document.status is DocumentStatus.PAID:
            # Drawn first so it sits behind the totals
            flow.add(TextRun(
                self.page_width * 0.7, y + 15 * mm, "PAID", FONT_BOLD, 65, PAID_GREEN,
                "center", opacity=0.12, angle=12,
            ))

        value_x = self.page_width - MARGIN
        label_x = value_x - SUMMARY_LABEL_OFFSET
        flow.add(
            TextRun(label_x, y, "Subtotal:", FONT_REGULAR, 9, MUTED),
            TextRun(value_x, y, format_money(totals.subtotal, currency), FONT_REGULAR, 9, MUTED, "right"),
            TextRun(label_x, y + 8 * mm, f"Tax ({format_percentage(rate)}):", FONT_REGULAR, 9, MUTED),
            TextRun(
                value_x, y + 8 * mm, format_money(totals.tax_amount, currency),
                FONT_REGULAR, 9, MUTED, "right",
            ),
            Polyline(((label_x, y + 13 * mm), (value_x, y + 13 * mm)), stroke=RULE),
            TextRun(label_x, y + 22 * mm, "TOTAL AMOUNT:", FONT_BOLD, 10, INK),
            TextRun(value_x, y + 22 * mm, format_money(totals.total, currency), FONT_BOLD, 16, ACCENT, "right"),
        )
        flow.y = y + SUMMARY_HEIGHT

    def _notes(self, flow: _Flow, document: Document, profile: BusinessProfile) -> None:
        blocks = []
        notes = document.notes if document.notes and document.notes.strip() else profile.terms_text
        if notes and notes.strip():
            blocks.append(("NOTES & TERMS", notes))
        if profile.payment_instructions and profile.payment_instructions.strip():
            blocks.append(("PAYMENT DETAILS", profile.payment_instructions))

        gap = NOTES_GAP
        for heading, body in blocks:
            lines = wrap_text(body, FONT_REGULAR, 8, self.content_width)
            flow.y += gap
            # Keep the heading together with its first line
            if not flow.fits(HEADING_LEADING + NOTES_LEADING):
                flow.new_page()
            self._text_line(flow, heading, FONT_BOLD, 9, INK, HEADING_LEADING)
            for line in lines:
                self._text_line(flow, line, FONT_REGULAR, 8, MUTED, NOTES_LEADING)
            gap = BLOCK_GAP

    # ------------------------------------------------------------------ footer

    def _waves(self) -> list[Polyline]:
        """Two overlapping translucent waves inside the reserved footer band."""
        w, h = self.page_width, self.page_height
        shapes = (
            (15 * mm, (w * 0.25, h - 35 * mm), (w * 0.75, h - 5 * mm), 25 * mm, LIGHT_BLUE, 0.25),
            (25 * mm, (w * 0.35, h - 5 * mm), (w * 0.65, h - 40 * mm), 10 * mm, ACCENT, 0.15),
        )
        waves = []
        for start_rise, c1, c2, end_rise, color, opacity in shapes:
            start = (0.0, h - start_rise)
            points = [(0.0, h), start]
            points += _cubic_bezier(start, c1, c2, (w, h - end_rise), WAVE_STEPS)
            points.append((w, h))
            waves.append(Polyline(tuple(points), fill=color, opacity=opacity, line_width=0, closed=True))
        return waves

    def _stamp_footers(self, contents: list[list[DrawInstruction]], profile: BusinessProfile) -> list[Page]:
        """Second pass: wrap each page's content with chrome and "Page X of N"."""
        total_pages = len(contents)
        brand = (profile.footer_brand_text or profile.name).upper()
        info = "  |  ".join(
            part for part in (f"TAX ID: {profile.tax_id}" if profile.tax_id else "", profile.email) if part
        )
        w, h = self.page_width, self.page_height

        pages = []
        for number, content in enumerate(contents, start=1):
            chrome: list[DrawInstruction] = [Rect(0, 0, w, TOP_BAR_HEIGHT, fill=ACCENT)]
            chrome += self._waves()
            footer: list[DrawInstruction] = [
                TextRun(MARGIN, h - 12 * mm, brand, FONT_BOLD, 8, INK),
                TextRun(w - MARGIN, h - 12 * mm, f"Page {number} of {total_pages}", FONT_BOLD, 8, DEEP_BLUE, "right"),
            ]
            if info:
                footer.append(TextRun(MARGIN, h - 8 * mm, info, FONT_REGULAR, 7, MUTED))
            pages.append(Page(number=number, width=w, height=h, instructions=tuple(chrome + content + footer)))
        return pages


def render_pages(document: Document, profile: BusinessProfile) -> list[Page]:
    """Lay out a document on A4 pages with the default engine."""
    return LayoutEngine().render(document, profile)
