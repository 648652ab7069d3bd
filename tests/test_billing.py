import asyncio
import re
from dataclasses import replace
from datetime import date, timedelta

import pytest

from billforge.domain.errors import DocumentLockedError, NotFound, ValidationError
from billforge.domain.models import DocumentKind, DocumentStatus, LineItem, TransactionKind
from billforge.infrastructure.store import InMemoryRecordStore
from billforge.services.billing import BillingService
from billforge.services.export import PreviewSink

from conftest import TODAY


def _create(service: BillingService, kind: DocumentKind = DocumentKind.INVOICE, **overrides):
    fields = {
        "client_name": "TechCorp Ltd",
        "issue_date": date(2024, 1, 5),
        "due_date": date(2024, 2, 5),
        "items": [LineItem("1", "Website design", 2, 50.0), LineItem("2", "Hosting setup", 1, 25.5)],
    }
    fields.update(overrides)
    return asyncio.run(service.create_document(kind, **fields))


def test_create_assigns_number_and_draft_status(service) -> None:
    invoice = _create(service)
    quote = _create(service, DocumentKind.QUOTATION)

    assert re.fullmatch(r"INV-\d{4}", invoice.number)
    assert re.fullmatch(r"QT-\d{4}", quote.number)
    assert invoice.status is DocumentStatus.DRAFT
    assert invoice.tax_percentage is None
    assert [d.id for d in asyncio.run(service.list_documents(DocumentKind.INVOICE))] == [invoice.id]


def test_create_defaults_issue_today_and_due_a_week_later(service) -> None:
    document = _create(service, issue_date=None, due_date=None)
    assert document.issue_date == TODAY
    assert document.due_date == TODAY + timedelta(days=7)


def test_create_rejects_invalid_draft(service) -> None:
    with pytest.raises(ValidationError):
        _create(service, client_name="")
    assert asyncio.run(service.list_documents()) == []


def test_create_requires_profile() -> None:
    with pytest.raises(NotFound):
        _create(BillingService(store=InMemoryRecordStore()))


def test_snapshot_tax_rate_freezes_rate(store, profile) -> None:
    service = BillingService(store=store, snapshot_tax_rate=True, today=lambda: TODAY)
    asyncio.run(service.update_profile(profile))
    document = _create(service)
    assert document.tax_percentage == 8

    asyncio.run(service.update_profile(replace(profile, tax_percentage=20)))
    assert asyncio.run(service.totals(document.id)).total == pytest.approx(135.54)


def test_totals_follow_current_profile_rate(service, profile) -> None:
    document = _create(service)
    assert asyncio.run(service.totals(document.id)).total == pytest.approx(135.54)

    asyncio.run(service.update_profile(replace(profile, tax_percentage=0)))
    assert asyncio.run(service.totals(document.id)).total == pytest.approx(125.50)


def test_paying_invoice_records_single_sale(service) -> None:
    document = _create(service)

    first = asyncio.run(service.set_status(document.id, "Sent"))
    assert first.transaction is None

    paid = asyncio.run(service.set_status(document.id, DocumentStatus.PAID))
    again = asyncio.run(service.set_status(document.id, DocumentStatus.PAID))

    ledger = asyncio.run(service.list_transactions())
    assert paid.transaction is not None
    assert again.transaction is None
    assert len(ledger) == 1
    assert ledger[0].amount == pytest.approx(135.54)
    assert ledger[0].reference == document.number
    assert ledger[0].date == TODAY
    assert asyncio.run(service.get_document(document.id)).status is DocumentStatus.PAID


def test_paying_quotation_records_nothing(service) -> None:
    quote = _create(service, DocumentKind.QUOTATION)
    asyncio.run(service.set_status(quote.id, "Paid"))
    assert asyncio.run(service.list_transactions()) == []


def test_status_of_unknown_document(service) -> None:
    with pytest.raises(NotFound):
        asyncio.run(service.set_status("missing", "Paid"))


def test_edits_allowed_until_paid(service) -> None:
    document = _create(service)
    asyncio.run(service.set_status(document.id, "Sent"))

    updated = asyncio.run(service.update_document(document.id, notes="Net 30", items=[LineItem("9", "Extra", 1, 5)]))
    assert updated.notes == "Net 30"
    assert updated.number == document.number

    asyncio.run(service.set_status(document.id, "Paid"))
    with pytest.raises(DocumentLockedError):
        asyncio.run(service.update_document(document.id, notes="Too late"))


def test_number_and_status_cannot_be_edited(service) -> None:
    document = _create(service)
    with pytest.raises(ValidationError):
        asyncio.run(service.update_document(document.id, number="INV-0001"))


def test_catalog_and_client_helpers(service) -> None:
    document = _create(service, items=[])
    entry = asyncio.run(service.add_catalog_entry("Logo design", 150))
    client = asyncio.run(service.add_client("Acme Corp", email="billing@acme.example"))

    with_item = asyncio.run(service.add_catalog_item(document.id, entry.id))
    assert [(i.description, i.quantity, i.unit_price) for i in with_item.items] == [("Logo design", 1, 150)]

    with_client = asyncio.run(service.assign_client(document.id, client.id))
    assert with_client.client_name == "Acme Corp"
    assert with_client.client_email == "billing@acme.example"


def test_duplicate_clients_are_rejected(service) -> None:
    asyncio.run(service.add_client("Acme Corp", email="billing@acme.example"))
    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(service.add_client("ACME CORP"))
    assert "client_id" in exc_info.value.details


def test_manual_transactions_and_summary(service) -> None:
    asyncio.run(service.record_transaction(TransactionKind.SALE, "Consulting", 1000, "Workshop"))
    asyncio.run(service.record_transaction(TransactionKind.EXPENSE, "Software", 250, "Licences"))

    summary = asyncio.run(service.ledger_summary())
    assert summary.profit == 750
    assert summary.profit_margin == 75
    assert len(asyncio.run(service.list_transactions(TransactionKind.EXPENSE))) == 1

    with pytest.raises(ValidationError):
        asyncio.run(service.record_transaction(TransactionKind.EXPENSE, "Software", 0, ""))


def test_delete_missing_records_raise(service) -> None:
    for delete in (service.delete_document, service.delete_transaction, service.delete_client):
        with pytest.raises(NotFound):
            asyncio.run(delete("missing"))


def test_export_through_sink(service) -> None:
    document = _create(service)
    shown = []
    result = asyncio.run(service.export(document.id, PreviewSink(lambda content, name: shown.append(name))))
    assert shown == [f"INVOICE_{document.number}.pdf"]
    assert result.filename == shown[0]
