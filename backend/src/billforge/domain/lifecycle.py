"""
Document lifecycle machine.

Owns the status field of a document and derives the single ledger
posting made when an invoice is paid.

    Draft -> Sent -> Paid
    Draft -> Sent -> Expired
    Draft -> Paid

Transitions are not forward-only: any known status may follow any other
(for example Paid -> Draft to correct a mistake). Unknown statuses are
rejected, never coerced.

Ledger rule: an Invoice moving to Paid from any status other than Paid
posts exactly one Sale for the document total at that instant. The guard
is the *previous* status, so repeating "mark as paid" posts nothing.
Quotations never post.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Any
from uuid import uuid4

from .errors import DocumentLockedError, InvalidStatusError
from .models import (
    BusinessProfile,
    Document,
    DocumentKind,
    DocumentStatus,
    LedgerTransaction,
    StatusChange,
    TransactionKind,
)
from .totals import document_totals

logger = logging.getLogger(__name__)


SALE_CATEGORY = "Product Sales"


def parse_status(value: Any) -> DocumentStatus:
    """
    Resolve a status given as an enum member, value or name.

    Raises:
        InvalidStatusError: If the value names no known status
    """
    if isinstance(value, DocumentStatus):
        return value
    if isinstance(value, str):
        for status in DocumentStatus:
            if value == status.value or value.upper() == status.name:
                return status
    raise InvalidStatusError(value)


def build_sale_transaction(
    document: Document,
    profile: BusinessProfile,
    today: date,
    transaction_id: str | None = None,
) -> LedgerTransaction:
    """Sale posting for a paid invoice, priced at the current total."""
    totals = document_totals(document, profile)
    return LedgerTransaction(
        id=transaction_id or f"sale-inv-{document.id}-{uuid4().hex[:8]}",
        kind=TransactionKind.SALE,
        date=today,
        category=SALE_CATEGORY,
        amount=totals.total,
        description=f"Payment for Invoice {document.number}",
        reference=document.number,
    )


def set_status(
    document: Document,
    new_status: DocumentStatus | str,
    profile: BusinessProfile,
    today: date | None = None,
    transaction_id: str | None = None,
) -> StatusChange:
    """
    Move a document to a new status.

    Args:
        document: Current snapshot of the document
        new_status: Target status (enum member or its value/name)
        profile: Business profile supplying the tax rate for the posting
        today: Posting date (defaults to the current date)
        transaction_id: Id for the posted sale (generated if None)

    Returns:
        StatusChange with the updated document and the posted sale, if any

    Raises:
        InvalidStatusError: If new_status is not a known status
    """
    target = parse_status(new_status)
    previous = document.status
    updated = replace(document, status=target)

    transaction = None
    if (
        document.kind is DocumentKind.INVOICE
        and target is DocumentStatus.PAID
        and previous is not DocumentStatus.PAID
    ):
        transaction = build_sale_transaction(
            updated, profile, today or date.today(), transaction_id
        )
        logger.info(
            f"Invoice {document.number} paid: posting sale of {transaction.amount:.2f} "
            f"{profile.currency_code}"
        )
    elif previous is target:
        logger.debug(f"Document {document.number} already {target.value}, nothing posted")
    else:
        logger.info(f"Document {document.number}: {previous.value} -> {target.value}")

    return StatusChange(document=updated, previous_status=previous, transaction=transaction)


def ensure_editable(document: Document) -> None:
    """
    Reject edits to documents that are Paid or Expired.

    Raises:
        DocumentLockedError: If the document status forbids edits
    """
    if not document.is_editable:
        raise DocumentLockedError(document.id, document.status.value)
