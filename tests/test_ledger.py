from datetime import date

from billforge.domain.ledger import (
    apply_client,
    find_duplicate_client,
    line_item_from_catalog,
    summarize_ledger,
    transactions_for_reference,
)
from billforge.domain.models import CatalogItem, Client, LedgerTransaction, TransactionKind


def _tx(kind: TransactionKind, amount: float, reference: str | None = None) -> LedgerTransaction:
    return LedgerTransaction(
        id=f"{kind.value}-{amount}",
        kind=kind,
        date=date(2024, 3, 1),
        category="General",
        amount=amount,
        description="",
        reference=reference,
    )


def test_summary_totals_and_margin() -> None:
    summary = summarize_ledger([
        _tx(TransactionKind.SALE, 1000, "INV-1001"),
        _tx(TransactionKind.SALE, 500),
        _tx(TransactionKind.EXPENSE, 400),
    ])
    assert summary.total_sales == 1500
    assert summary.total_expenses == 400
    assert summary.profit == 1100
    assert summary.profit_margin == 73
    assert summary.transaction_count == 3


def test_margin_is_zero_without_sales() -> None:
    summary = summarize_ledger([_tx(TransactionKind.EXPENSE, 80)])
    assert summary.profit == -80
    assert summary.profit_margin == 0


def test_transactions_for_reference() -> None:
    txs = [_tx(TransactionKind.SALE, 10, "INV-1"), _tx(TransactionKind.SALE, 20, "INV-2")]
    assert [t.amount for t in transactions_for_reference(txs, "INV-2")] == [20]


def test_catalog_item_becomes_single_quantity_row() -> None:
    item = line_item_from_catalog(CatalogItem("c1", "Logo design", 150.0), item_id="row-1")
    assert (item.id, item.description, item.quantity, item.unit_price) == ("row-1", "Logo design", 1, 150.0)


def test_apply_client_copies_name_and_email(invoice) -> None:
    filled = apply_client(invoice, Client("c1", "Acme", email=""))
    assert filled.client_name == "Acme"
    assert filled.client_email is None
    assert filled.items == invoice.items


def test_duplicate_client_by_name_or_email() -> None:
    clients = [Client("1", "Acme Corp", email="billing@acme.example")]
    assert find_duplicate_client(clients, " acme corp ", "") is clients[0]
    assert find_duplicate_client(clients, "Other", "BILLING@acme.example") is clients[0]
    assert find_duplicate_client(clients, "Other", "") is None
