"""
Billing orchestrator service.

Coordinates the pure billing core with its collaborators:
1. Record store - documents, ledger, profile, clients, catalog
2. Totals calculator and lifecycle machine
3. Numbering on document creation
4. Layout engine and export sinks
5. Optional text suggestions

This is the primary interface used by the API layer. The core functions
stay synchronous and side-effect free; every side effect (store writes,
the single ledger posting on payment, exports) happens here.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import date, timedelta
from typing import Any
from uuid import uuid4

from billforge.domain.errors import NotFound, ValidationError
from billforge.domain.ledger import (
    LedgerSummary,
    apply_client,
    find_duplicate_client,
    line_item_from_catalog,
    summarize_ledger,
)
from billforge.domain.lifecycle import ensure_editable, set_status
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
from billforge.domain.numbering import DEFAULT_MAX_ATTEMPTS, assign_number
from billforge.domain.totals import coerce_amount, document_totals
from billforge.domain.validation import validate_document, validate_profile
from billforge.infrastructure.store import (
    CATALOG,
    CLIENTS,
    DOCUMENTS,
    PROFILE,
    PROFILE_ID,
    TRANSACTIONS,
    RecordStore,
)
from billforge.layout import LayoutEngine, Page

from .export import ExportResult, ExportSink, MemorySink
from .suggestions import LineItemSuggestion, NullSuggester, TextSuggester

logger = logging.getLogger(__name__)


DEFAULT_PAYMENT_DAYS = 7

EDITABLE_FIELDS = frozenset({"client_name", "client_email", "issue_date", "due_date", "items", "notes"})


class BillingService:
    """
    Orchestrates documents, the ledger and rendering over a record store.

    Example:
        service = BillingService(store=InMemoryRecordStore())
        await service.update_profile(profile)
        invoice = await service.create_document(
            DocumentKind.INVOICE,
            client_name="TechCorp",
            issue_date=date(2024, 1, 5),
            due_date=date(2024, 2, 5),
            items=[LineItem("1", "Design", 2, 50.0)],
        )
        change = await service.set_status(invoice.id, DocumentStatus.PAID)
    """

    def __init__(
        self,
        store: RecordStore,
        layout: LayoutEngine | None = None,
        suggester: TextSuggester | None = None,
        snapshot_tax_rate: bool = False,
        numbering_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Initialize billing service.

        Args:
            store: Record store holding all business records
            layout: Layout engine (created if None)
            suggester: Suggestion provider (suggestions disabled if None)
            snapshot_tax_rate: Freeze the tax rate onto new documents
            numbering_max_attempts: Redraw budget for colliding numbers
            today: Clock used for issue defaults and ledger posting dates
        """
        self.store = store
        self.layout = layout or LayoutEngine()
        self.suggester = suggester or NullSuggester()
        self.snapshot_tax_rate = snapshot_tax_rate
        self.numbering_max_attempts = numbering_max_attempts
        self.today = today

    # ---------------------------------------------------------------- profile

    async def get_profile(self) -> BusinessProfile:
        """
        Current business profile.

        Raises:
            NotFound: If the profile has not been set up yet
        """
        record = await self.store.get(PROFILE, PROFILE_ID)
        return BusinessProfile.from_record(record)

    async def update_profile(self, profile: BusinessProfile) -> BusinessProfile:
        """Validate and save the business profile."""
        validate_profile(profile)
        await self.store.upsert(PROFILE, {"id": PROFILE_ID, **profile.to_record()})
        logger.info(f"Business profile updated: {profile.name}")
        return profile

    # -------------------------------------------------------------- documents

    async def list_documents(self, kind: DocumentKind | None = None) -> list[Document]:
        documents = [Document.from_record(r) for r in await self.store.list(DOCUMENTS)]
        if kind is not None:
            documents = [d for d in documents if d.kind is kind]
        return documents

    async def get_document(self, document_id: str) -> Document:
        return Document.from_record(await self.store.get(DOCUMENTS, document_id))

    async def create_document(
        self,
        kind: DocumentKind,
        client_name: str,
        issue_date: date | None = None,
        due_date: date | None = None,
        items: Sequence[LineItem] = (),
        client_email: str | None = None,
        notes: str | None = None,
    ) -> Document:
        """
        Create a Draft document with a freshly assigned number.

        Raises:
            ValidationError: If the draft is incomplete
            NumberingExhaustedError: If no free number could be drawn
        """
        profile = await self.get_profile()
        existing = {d.number for d in await self.list_documents()}
        issue = issue_date or self.today()

        document = Document(
            id=uuid4().hex,
            kind=kind,
            number=assign_number(kind, profile, existing=existing, max_attempts=self.numbering_max_attempts),
            issue_date=issue,
            due_date=due_date or issue + timedelta(days=DEFAULT_PAYMENT_DAYS),
            client_name=client_name,
            client_email=client_email or None,
            items=list(items),
            status=DocumentStatus.DRAFT,
            notes=notes,
            tax_percentage=profile.tax_percentage if self.snapshot_tax_rate else None,
        )
        validate_document(document)

        await self.store.insert(DOCUMENTS, document.to_record())
        logger.info(f"Created {kind.label.lower()} {document.number} for {client_name}")
        return document

    async def update_document(self, document_id: str, **changes: Any) -> Document:
        """
        Edit items, client fields, dates or notes of an editable document.

        Raises:
            NotFound: If the document does not exist
            DocumentLockedError: If the document is Paid or Expired
            ValidationError: If a change touches another field or is invalid
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be edited: {', '.join(sorted(unknown))}",
                problems=[f"{name} is not editable" for name in sorted(unknown)],
            )

        document = await self.get_document(document_id)
        ensure_editable(document)
        if "items" in changes:
            changes["items"] = list(changes["items"])
        updated = replace(document, **changes)
        validate_document(updated)

        await self.store.update(DOCUMENTS, updated.to_record())
        logger.info(f"Updated document {updated.number}")
        return updated

    async def delete_document(self, document_id: str) -> None:
        if not await self.store.delete(DOCUMENTS, document_id):
            raise NotFound(DOCUMENTS, document_id)
        logger.info(f"Deleted document {document_id}")

    async def add_catalog_item(self, document_id: str, catalog_id: str) -> Document:
        """Append a catalog entry to a document as a quantity-1 line item."""
        document = await self.get_document(document_id)
        catalog_item = CatalogItem.from_record(await self.store.get(CATALOG, catalog_id))
        return await self.update_document(
            document_id, items=[*document.items, line_item_from_catalog(catalog_item)]
        )

    async def assign_client(self, document_id: str, client_id: str) -> Document:
        """Fill the Bill To fields from a saved client."""
        document = await self.get_document(document_id)
        client = Client.from_record(await self.store.get(CLIENTS, client_id))
        filled = apply_client(document, client)
        return await self.update_document(
            document_id, client_name=filled.client_name, client_email=filled.client_email
        )

    async def set_status(self, document_id: str, status: DocumentStatus | str) -> StatusChange:
        """
        Transition a document and persist any resulting sale.

        Raises:
            NotFound: If no document has this id
            InvalidStatusError: If the status is not a known state
        """
        document = await self.get_document(document_id)
        profile = await self.get_profile()

        change = set_status(document, status, profile, today=self.today())

        await self.store.update(DOCUMENTS, change.document.to_record())
        if change.transaction is not None:
            await self.store.insert(TRANSACTIONS, change.transaction.to_record())
            logger.info(f"Recorded sale {change.transaction.id} for {document.number}")
        return change

    async def totals(self, document_id: str) -> Totals:
        """Totals of a stored document at the current tax rate."""
        document = await self.get_document(document_id)
        return document_totals(document, await self.get_profile())

    # -------------------------------------------------------------- rendering

    async def render(self, document_id: str) -> list[Page]:
        document = await self.get_document(document_id)
        return self.layout.render(document, await self.get_profile())

    async def export(self, document_id: str, sink: ExportSink | None = None) -> ExportResult:
        """
        Render a document and hand it to an export sink.

        Raises:
            ExportError: If the sink fails (not retried)
        """
        document = await self.get_document(document_id)
        pages = self.layout.render(document, await self.get_profile())
        return await (sink or MemorySink()).export(pages, document)

    # ----------------------------------------------------------------- ledger

    async def list_transactions(self, kind: TransactionKind | None = None) -> list[LedgerTransaction]:
        transactions = [LedgerTransaction.from_record(r) for r in await self.store.list(TRANSACTIONS)]
        if kind is not None:
            transactions = [t for t in transactions if t.kind is kind]
        return transactions

    async def record_transaction(
        self,
        kind: TransactionKind,
        category: str,
        amount: float,
        description: str,
        on: date | None = None,
        reference: str | None = None,
    ) -> LedgerTransaction:
        """
        Record a manual sale or expense.

        Raises:
            ValidationError: If amount is not positive or category is empty
        """
        problems = []
        if coerce_amount(amount) <= 0:
            problems.append("Amount must be a positive number")
        if not category.strip():
            problems.append("Category is required")
        if problems:
            raise ValidationError("Transaction failed validation", problems=problems)

        transaction = LedgerTransaction(
            id=uuid4().hex,
            kind=kind,
            date=on or self.today(),
            category=category,
            amount=float(amount),
            description=description,
            reference=reference,
        )
        await self.store.insert(TRANSACTIONS, transaction.to_record())
        logger.info(f"Recorded {kind.value.lower()} of {transaction.amount:.2f} ({category})")
        return transaction

    async def delete_transaction(self, transaction_id: str) -> None:
        if not await self.store.delete(TRANSACTIONS, transaction_id):
            raise NotFound(TRANSACTIONS, transaction_id)

    async def ledger_summary(self) -> LedgerSummary:
        return summarize_ledger(await self.list_transactions())

    # ------------------------------------------------------- clients & catalog

    async def list_clients(self) -> list[Client]:
        return [Client.from_record(r) for r in await self.store.list(CLIENTS)]

    async def add_client(self, name: str, email: str = "", phone: str = "", address: str = "") -> Client:
        """
        Save a client, rejecting duplicates by name or email.

        Raises:
            ValidationError: If name is empty or the client already exists
        """
        if not name.strip():
            raise ValidationError("Client name is required", problems=["Client name is required"])
        duplicate = find_duplicate_client(await self.list_clients(), name, email)
        if duplicate is not None:
            raise ValidationError(
                "This client already exists",
                problems=[f"Matches saved client {duplicate.name}"],
                client_id=duplicate.id,
            )
        client = Client(id=uuid4().hex, name=name.strip(), email=email.strip(), phone=phone, address=address)
        await self.store.insert(CLIENTS, client.to_record())
        return client

    async def delete_client(self, client_id: str) -> None:
        if not await self.store.delete(CLIENTS, client_id):
            raise NotFound(CLIENTS, client_id)

    async def list_catalog(self) -> list[CatalogItem]:
        return [CatalogItem.from_record(r) for r in await self.store.list(CATALOG)]

    async def add_catalog_entry(self, description: str, unit_price: float) -> CatalogItem:
        if not description.strip():
            raise ValidationError("Description is required", problems=["Description is required"])
        item = CatalogItem(id=uuid4().hex, description=description.strip(), unit_price=coerce_amount(unit_price))
        await self.store.insert(CATALOG, item.to_record())
        return item

    async def delete_catalog_entry(self, catalog_id: str) -> None:
        if not await self.store.delete(CATALOG, catalog_id):
            raise NotFound(CATALOG, catalog_id)

    # ------------------------------------------------------------ suggestions

    async def suggest_line_items(self, count: int = 3) -> list[LineItemSuggestion]:
        profile = await self.get_profile()
        return await self.suggester.suggest_line_items(profile.name, count)

    async def suggest_terms(self) -> str:
        profile = await self.get_profile()
        return await self.suggester.suggest_terms(profile.name)
