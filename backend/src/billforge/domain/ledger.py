"""
Ledger summaries and draft helpers.

Sales/expense totals feed the dashboard; the helpers pre-fill document
drafts from saved clients and catalog entries.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from uuid import uuid4

from .models import CatalogItem, Client, Document, LedgerTransaction, LineItem, TransactionKind


@dataclass(frozen=True)
class LedgerSummary:
    """Cash-flow totals over a set of ledger transactions."""
    total_sales: float
    total_expenses: float
    transaction_count: int

    @property
    def profit(self) -> float:
        return self.total_sales - self.total_expenses

    @property
    def profit_margin(self) -> int:
        """Whole-percent margin on sales; 0 when nothing was sold."""
        if self.total_sales <= 0:
            return 0
        return round(self.profit / self.total_sales * 100)


def summarize_ledger(transactions: Iterable[LedgerTransaction]) -> LedgerSummary:
    sales = 0.0
    expenses = 0.0
    count = 0
    for tx in transactions:
        count += 1
        if tx.kind is TransactionKind.SALE:
            sales += tx.amount
        else:
            expenses += tx.amount
    return LedgerSummary(total_sales=sales, total_expenses=expenses, transaction_count=count)


def transactions_for_reference(
    transactions: Iterable[LedgerTransaction],
    reference: str,
) -> list[LedgerTransaction]:
    """Transactions whose weak back-reference matches a document number."""
    return [tx for tx in transactions if tx.reference == reference]


def line_item_from_catalog(item: CatalogItem, item_id: str | None = None) -> LineItem:
    """New line item copied from the catalog, quantity 1."""
    return LineItem(
        id=item_id or uuid4().hex,
        description=item.description,
        quantity=1,
        unit_price=item.unit_price,
    )


def apply_client(document: Document, client: Client) -> Document:
    """Copy a saved client's name and email into a document."""
    return replace(document, client_name=client.name, client_email=client.email or None)


def find_duplicate_client(clients: Iterable[Client], name: str, email: str) -> Client | None:
    """Existing client with the same name or email, compared case-insensitively."""
    name_key = name.strip().lower()
    email_key = email.strip().lower()
    for client in clients:
        if client.name.strip().lower() == name_key:
            return client
        if email_key and client.email.strip().lower() == email_key:
            return client
    return None
