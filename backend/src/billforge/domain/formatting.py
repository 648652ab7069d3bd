"""
Display formatting for money, percentages and dates.

The same strings are used on screen and on the printed page.
"""

from datetime import date
from typing import Any

from .totals import coerce_amount


def format_money(amount: Any, currency_code: str) -> str:
    """
    Render an amount as ``<CUR> 1,234.56``.

    Thousands separators and exactly 2 decimal places.
    """
    return f"{currency_code} {coerce_amount(amount):,.2f}"


def format_quantity(quantity: Any) -> str:
    """Whole quantities print without decimals, fractional ones as given."""
    value = coerce_amount(quantity)
    if value.is_integer():
        return str(int(value))
    return f"{value:g}"


def format_percentage(rate: Any) -> str:
    """Tax label form: ``8%``, ``7.5%``."""
    return f"{coerce_amount(rate):g}%"


def format_date(value: date | str | None) -> str:
    """
    Render a date as DD-MM-YYYY regardless of its ISO storage order.

    Empty input renders as an empty string.
    """
    if not value:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return value.strftime("%d-%m-%Y")
