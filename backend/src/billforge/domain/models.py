"""
Domain models for quotations, invoices and the cash ledger.

These models are plain values handed between the calculator, the
lifecycle machine and the layout engine. Persistence is a collaborator
concern: each record converts to and from a JSON-friendly dict so any
record store can keep it.

Design Decisions:
- Frozen dataclasses; edits produce a new value via dataclasses.replace
- Status and kind are closed Enums, never free-form strings
- Money is float (no intermediate rounding); display rounds to 2 places
- Totals are never stored on a Document, they are recomputed on read
"""

import base64
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class DocumentKind(Enum):
    """The two kinds of billing document."""
    QUOTATION = "QUOTATION"
    INVOICE = "INVOICE"

    @property
    def label(self) -> str:
        """Human label used on the printed page."""
        return self.value.capitalize()


class DocumentStatus(Enum):
    """Lifecycle states shared by quotations and invoices."""
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    EXPIRED = "Expired"

    @property
    def is_editable(self) -> bool:
        """Items, parties, dates and notes may change only in these states."""
        return self in (DocumentStatus.DRAFT, DocumentStatus.SENT)


class TransactionKind(Enum):
    """Direction of a cash-flow event."""
    SALE = "SALE"
    EXPENSE = "EXPENSE"


@dataclass(frozen=True)
class LineItem:
    """
    One priced row of a document.

    Line total = quantity * unit_price, computed by the calculator.
    """
    id: str
    description: str
    quantity: float
    unit_price: float

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "LineItem":
        return cls(
            id=str(data["id"]),
            description=data.get("description", ""),
            quantity=data.get("quantity", 0),
            unit_price=data.get("unit_price", 0),
        )


@dataclass(frozen=True)
class Document:
    """
    A quotation or invoice: ordered line items, parties, dates and status.

    ``number`` is assigned once at creation and never changes afterwards.
    ``tax_percentage`` is only set when the tax rate was frozen onto the
    document at creation; otherwise the current business rate applies.
    """
    id: str
    kind: DocumentKind
    number: str
    issue_date: date
    due_date: date
    client_name: str
    client_email: str | None = None
    items: list[LineItem] = field(default_factory=list)
    status: DocumentStatus = DocumentStatus.DRAFT
    notes: str | None = None
    tax_percentage: float | None = None

    @property
    def is_editable(self) -> bool:
        return self.status.is_editable

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "number": self.number,
            "issue_date": self.issue_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "client_name": self.client_name,
            "client_email": self.client_email,
            "items": [item.to_record() for item in self.items],
            "status": self.status.value,
            "notes": self.notes,
            "tax_percentage": self.tax_percentage,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "Document":
        return cls(
            id=str(data["id"]),
            kind=DocumentKind(data["kind"]),
            number=data["number"],
            issue_date=date.fromisoformat(data["issue_date"]),
            due_date=date.fromisoformat(data["due_date"]),
            client_name=data.get("client_name", ""),
            client_email=data.get("client_email"),
            items=[LineItem.from_record(item) for item in data.get("items", [])],
            status=DocumentStatus(data.get("status", DocumentStatus.DRAFT.value)),
            notes=data.get("notes"),
            tax_percentage=data.get("tax_percentage"),
        )


@dataclass(frozen=True)
class BusinessProfile:
    """
    The issuing business: identity, tax rate, numbering prefixes, branding.

    One profile per deployment. Read by the calculator, the numbering
    assigner and the layout engine at the moment of use.
    """
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    tax_id: str = ""
    currency_code: str = "USD"
    tax_percentage: float = 0.0
    invoice_number_prefix: str = "INV"
    quotation_number_prefix: str = "QT"
    logo_image: bytes | None = None  # Raw PNG/JPEG bytes
    terms_text: str | None = None
    payment_instructions: str | None = None
    footer_brand_text: str | None = None

    def prefix_for(self, kind: DocumentKind) -> str:
        """Number prefix configured for a document kind."""
        if kind is DocumentKind.INVOICE:
            return self.invoice_number_prefix
        return self.quotation_number_prefix

    def to_record(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "tax_id": self.tax_id,
            "currency_code": self.currency_code,
            "tax_percentage": self.tax_percentage,
            "invoice_number_prefix": self.invoice_number_prefix,
            "quotation_number_prefix": self.quotation_number_prefix,
            "logo_image": (
                base64.b64encode(self.logo_image).decode("ascii")
                if self.logo_image else None
            ),
            "terms_text": self.terms_text,
            "payment_instructions": self.payment_instructions,
            "footer_brand_text": self.footer_brand_text,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "BusinessProfile":
        logo = data.get("logo_image")
        return cls(
            name=data["name"],
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            tax_id=data.get("tax_id", ""),
            currency_code=data.get("currency_code", "USD"),
            tax_percentage=data.get("tax_percentage", 0.0),
            invoice_number_prefix=data.get("invoice_number_prefix", "INV"),
            quotation_number_prefix=data.get("quotation_number_prefix", "QT"),
            logo_image=base64.b64decode(logo) if logo else None,
            terms_text=data.get("terms_text"),
            payment_instructions=data.get("payment_instructions"),
            footer_brand_text=data.get("footer_brand_text"),
        )


@dataclass(frozen=True)
class LedgerTransaction:
    """
    A recorded cash-flow event.

    ``reference`` is a weak back-link to a document number, not a key.
    """
    id: str
    kind: TransactionKind
    date: date
    category: str
    amount: float
    description: str
    reference: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "category": self.category,
            "amount": self.amount,
            "description": self.description,
            "reference": self.reference,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "LedgerTransaction":
        return cls(
            id=str(data["id"]),
            kind=TransactionKind(data["kind"]),
            date=date.fromisoformat(data["date"]),
            category=data.get("category", ""),
            amount=float(data.get("amount", 0.0)),
            description=data.get("description", ""),
            reference=data.get("reference"),
        )


@dataclass(frozen=True)
class Client:
    """A saved customer used to pre-fill the Bill To block."""
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "Client":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
        )


@dataclass(frozen=True)
class CatalogItem:
    """A predefined product or service with a default unit price."""
    id: str
    description: str
    unit_price: float

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "description": self.description, "unit_price": self.unit_price}

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "CatalogItem":
        return cls(
            id=str(data["id"]),
            description=data["description"],
            unit_price=float(data.get("unit_price", 0.0)),
        )


@dataclass(frozen=True)
class Totals:
    """Subtotal, tax and grand total of a document at evaluation time."""
    subtotal: float
    tax_amount: float
    total: float


@dataclass(frozen=True)
class StatusChange:
    """
    Outcome of a lifecycle transition.

    ``transaction`` is set only when the transition posted a sale.
    """
    document: Document
    previous_status: DocumentStatus
    transaction: LedgerTransaction | None = None

    @property
    def posted_sale(self) -> bool:
        return self.transaction is not None
