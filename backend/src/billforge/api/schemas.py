"""
Pydantic schemas for API request/response validation.

These schemas define the contract between frontend and backend.
Monetary values are plain numbers; ``display`` fields carry the
currency-formatted strings the printed document shows.
"""

import base64
import binascii
import datetime
from datetime import date
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from billforge.domain.formatting import format_money
from billforge.domain.ledger import LedgerSummary
from billforge.domain.models import (
    BusinessProfile,
    CatalogItem,
    Client,
    Document,
    DocumentKind,
    DocumentStatus,
    LedgerTransaction,
    LineItem,
    StatusChange,
    Totals,
    TransactionKind,
)


# =============================================================================
# Shared payloads
# =============================================================================

class LineItemPayload(BaseModel):
    """One line item as sent by the editor."""
    id: str = Field(default_factory=lambda: uuid4().hex)
    description: str = ""
    quantity: float = 0
    unit_price: float = 0

    def to_model(self) -> LineItem:
        return LineItem(
            id=self.id,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )

    @classmethod
    def from_model(cls, item: LineItem) -> "LineItemPayload":
        return cls(id=item.id, description=item.description, quantity=item.quantity, unit_price=item.unit_price)


class DraftLineItemPayload(BaseModel):
    """
    A line item as typed into an unsaved draft.

    Numbers are accepted as sent (null, blank or non-numeric strings
    included); the calculator counts anything malformed as zero.
    """
    id: str = Field(default_factory=lambda: uuid4().hex)
    description: str | None = ""
    quantity: Any = 0
    unit_price: Any = 0

    def to_model(self) -> LineItem:
        return LineItem(
            id=self.id,
            description=self.description or "",
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


class ProfilePayload(BaseModel):
    """Business profile. ``logo_image`` is base64-encoded PNG/JPEG bytes."""
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    tax_id: str = ""
    currency_code: str = "USD"
    tax_percentage: float = 0.0
    invoice_number_prefix: str = "INV"
    quotation_number_prefix: str = "QT"
    logo_image: str | None = None
    terms_text: str | None = None
    payment_instructions: str | None = None
    footer_brand_text: str | None = None

    @field_validator("logo_image")
    @classmethod
    def check_base64(cls, value: str | None) -> str | None:
        if value:
            try:
                base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise ValueError("logo_image must be base64-encoded") from e
        return value or None

    def to_model(self) -> BusinessProfile:
        data = self.model_dump()
        logo = data.pop("logo_image")
        return BusinessProfile(**data, logo_image=base64.b64decode(logo) if logo else None)

    @classmethod
    def from_model(cls, profile: BusinessProfile) -> "ProfilePayload":
        return cls(**profile.to_record())


# =============================================================================
# Request Schemas
# =============================================================================

class DocumentCreateRequest(BaseModel):
    """Request to create a Draft quotation or invoice."""
    kind: DocumentKind
    client_name: str
    client_email: str | None = None
    issue_date: date | None = Field(default=None, description="Defaults to today")
    due_date: date | None = Field(default=None, description="Defaults to seven days after the issue date")
    items: list[LineItemPayload] = []
    notes: str | None = None


NULLABLE_FIELDS = frozenset({"client_email", "notes"})


class DocumentUpdateRequest(BaseModel):
    """Partial edit of an editable document. Omitted fields are left unchanged."""
    client_name: str | None = None
    client_email: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    items: list[LineItemPayload] | None = None
    notes: str | None = None

    def to_changes(self) -> dict[str, Any]:
        changes = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None or name in NULLABLE_FIELDS
        }
        if "items" in changes:
            changes["items"] = [item.to_model() for item in self.items or []]
        return changes


class StatusChangeRequest(BaseModel):
    """Requested lifecycle state; validated by the lifecycle machine."""
    status: str = Field(..., description="Draft, Sent, Paid or Expired")


class TotalsRequest(BaseModel):
    """Live totals for an unsaved draft."""
    items: list[DraftLineItemPayload] = []
    tax_percentage: float | None = Field(
        default=None,
        description="Tax rate in percent (business rate if omitted)",
    )


class TransactionCreateRequest(BaseModel):
    """Request to record a manual sale or expense."""
    kind: TransactionKind
    category: str
    amount: float
    description: str = ""
    date: datetime.date | None = Field(default=None, description="Defaults to today")
    reference: str | None = None


class ClientCreateRequest(BaseModel):
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""


class CatalogItemCreateRequest(BaseModel):
    description: str
    unit_price: float = Field(default=0.0, ge=0)


class LineItemSuggestionRequest(BaseModel):
    count: int = Field(default=3, ge=1, le=10)


# =============================================================================
# Response Schemas
# =============================================================================

class TotalsResponse(BaseModel):
    """Document totals at evaluation time."""
    subtotal: float
    tax_amount: float
    total: float
    currency_code: str
    display: dict[str, str]

    @classmethod
    def from_model(cls, totals: Totals, currency_code: str) -> "TotalsResponse":
        return cls(
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total=totals.total,
            currency_code=currency_code,
            display={
                "subtotal": format_money(totals.subtotal, currency_code),
                "tax_amount": format_money(totals.tax_amount, currency_code),
                "total": format_money(totals.total, currency_code),
            },
        )


class DocumentResponse(BaseModel):
    id: str
    kind: DocumentKind
    number: str
    status: DocumentStatus
    issue_date: date
    due_date: date
    client_name: str
    client_email: str | None = None
    items: list[LineItemPayload]
    notes: str | None = None
    tax_percentage: float | None = None
    is_editable: bool

    @classmethod
    def from_model(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            kind=document.kind,
            number=document.number,
            status=document.status,
            issue_date=document.issue_date,
            due_date=document.due_date,
            client_name=document.client_name,
            client_email=document.client_email,
            items=[LineItemPayload.from_model(item) for item in document.items],
            notes=document.notes,
            tax_percentage=document.tax_percentage,
            is_editable=document.is_editable,
        )


class TransactionResponse(BaseModel):
    id: str
    kind: TransactionKind
    date: datetime.date
    category: str
    amount: float
    description: str
    reference: str | None = None

    @classmethod
    def from_model(cls, tx: LedgerTransaction) -> "TransactionResponse":
        return cls(**tx.to_record())


class StatusChangeResponse(BaseModel):
    """Result of a status transition, including any sale it posted."""
    document: DocumentResponse
    previous_status: DocumentStatus
    transaction: TransactionResponse | None = None

    @classmethod
    def from_model(cls, change: StatusChange) -> "StatusChangeResponse":
        return cls(
            document=DocumentResponse.from_model(change.document),
            previous_status=change.previous_status,
            transaction=TransactionResponse.from_model(change.transaction) if change.transaction else None,
        )


class LedgerSummaryResponse(BaseModel):
    total_sales: float
    total_expenses: float
    profit: float
    profit_margin: int
    transaction_count: int

    @classmethod
    def from_model(cls, summary: LedgerSummary) -> "LedgerSummaryResponse":
        return cls(
            total_sales=summary.total_sales,
            total_expenses=summary.total_expenses,
            profit=summary.profit,
            profit_margin=summary.profit_margin,
            transaction_count=summary.transaction_count,
        )


class ClientResponse(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""

    @classmethod
    def from_model(cls, client: Client) -> "ClientResponse":
        return cls(**client.to_record())


class CatalogItemResponse(BaseModel):
    id: str
    description: str
    unit_price: float

    @classmethod
    def from_model(cls, item: CatalogItem) -> "CatalogItemResponse":
        return cls(**item.to_record())


class LayoutResponse(BaseModel):
    """Draw instructions of a rendered document."""
    page_count: int
    fingerprint: str
    pages: list[dict[str, Any]]


class LineItemSuggestionResponse(BaseModel):
    description: str
    unit_price: float


class TermsSuggestionResponse(BaseModel):
    text: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    store: str = "memory"
    suggestions: bool = False


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: str | None = None
    code: str | None = None


class ExportResponse(BaseModel):
    """Metadata of a PDF written to the export directory."""
    filename: str
    size_bytes: int
    content_hash: str
    path: str | None = None
