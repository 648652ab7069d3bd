"""
Money and totals calculator.

Pure functions over line items and a tax rate. Nothing here raises:
malformed numeric input (None, NaN, infinities, strings that are not
numbers, negatives) degrades to 0 so totals can always be displayed
while a draft is still being typed.

    subtotal   = sum(quantity * unit_price)
    tax_amount = subtotal * tax_percentage / 100
    total      = subtotal + tax_amount

No intermediate rounding; rounding to 2 places is a display concern.
"""

import math
from collections.abc import Iterable
from typing import Any

from .models import BusinessProfile, Document, LineItem, Totals


def coerce_amount(value: Any) -> float:
    """
    Convert an input number to a finite, non-negative float.

    Anything that is not a finite number becomes 0.0; negatives clamp to 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def line_total(item: LineItem) -> float:
    """Quantity times unit price for a single row."""
    return coerce_amount(item.quantity) * coerce_amount(item.unit_price)


def compute_totals(items: Iterable[LineItem], tax_percentage: Any) -> Totals:
    """
    Compute subtotal, tax and total for a sequence of line items.

    Args:
        items: Line items in display order (order does not affect the sum)
        tax_percentage: Tax rate in percent, e.g. 8 for 8%

    Returns:
        Totals recomputed from the given items and rate
    """
    subtotal = 0.0
    for item in items:
        subtotal += line_total(item)

    rate = coerce_amount(tax_percentage)
    tax_amount = subtotal * rate / 100
    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def effective_tax_percentage(document: Document, profile: BusinessProfile) -> float:
    """Tax rate frozen on the document, or the current business rate."""
    if document.tax_percentage is not None:
        return coerce_amount(document.tax_percentage)
    return coerce_amount(profile.tax_percentage)


def document_totals(document: Document, profile: BusinessProfile) -> Totals:
    """Totals of a document at the tax rate in effect right now."""
    return compute_totals(document.items, effective_tax_percentage(document, profile))
