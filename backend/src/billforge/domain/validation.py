"""
Commit-time validation rules for documents and the business profile.

This module contains pure functions: no side effects, no I/O. Each rule
returns a ValidationCheck; the ``validate_*`` entry points run the rules
and raise a single ValidationError listing every failed check so the
caller can show them all at once.

Design Decisions:
- The calculator stays total-safe; rejecting bad numbers happens here
- Checks are collected, not short-circuited
- Dates only need issue <= due; past dates are allowed (back-filling)
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError
from .models import BusinessProfile, Document, LineItem


@dataclass
class ValidationCheck:
    """
    Result of a single validation rule.

    Mutable because checks are built incrementally during validation.
    """
    rule_name: str
    passed: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)


def _is_valid_amount(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number >= 0


def check_client(document: Document) -> ValidationCheck:
    """Client name is required; an email, when given, must look like one."""
    problems: list[str] = []
    if not document.client_name or not document.client_name.strip():
        problems.append("Client name is required")
    if document.client_email and "@" not in document.client_email:
        problems.append(f"Client email is not valid: {document.client_email}")

    return ValidationCheck(
        rule_name="client",
        passed=not problems,
        message="Client OK" if not problems else "; ".join(problems),
        details={"client_name": document.client_name, "client_email": document.client_email},
    )


def check_dates(document: Document) -> ValidationCheck:
    """
    Validate that the due date does not precede the issue date.

    Rule: issue_date <= due_date
    """
    passed = document.issue_date <= document.due_date
    return ValidationCheck(
        rule_name="dates",
        passed=passed,
        message=(
            "Date sequence valid" if passed
            else f"Due date ({document.due_date}) is before issue date ({document.issue_date})"
        ),
        details={
            "issue_date": str(document.issue_date),
            "due_date": str(document.due_date),
        },
    )


def check_line_items(items: list[LineItem]) -> ValidationCheck:
    """
    Validate line items: unique ids and non-negative finite numbers.

    An empty item list is valid and renders with zero totals.
    """
    problems: list[str] = []

    duplicates = sorted(item_id for item_id, count in Counter(i.id for i in items).items() if count > 1)
    if duplicates:
        problems.append(f"Duplicate line item ids: {', '.join(duplicates)}")

    for index, item in enumerate(items, start=1):
        if not _is_valid_amount(item.quantity):
            problems.append(f"Line {index}: quantity must be a non-negative number")
        if not _is_valid_amount(item.unit_price):
            problems.append(f"Line {index}: unit price must be a non-negative number")

    return ValidationCheck(
        rule_name="line_items",
        passed=not problems,
        message=f"{len(items)} line items valid" if not problems else "; ".join(problems),
        details={"line_item_count": len(items), "duplicate_ids": duplicates},
    )


def check_profile(profile: BusinessProfile) -> ValidationCheck:
    """Business name, currency and prefixes are required; tax is 0-100."""
    problems: list[str] = []
    if not profile.name.strip():
        problems.append("Business name is required")
    if not profile.currency_code.strip():
        problems.append("Currency code is required")
    if not profile.invoice_number_prefix.strip():
        problems.append("Invoice number prefix is required")
    if not profile.quotation_number_prefix.strip():
        problems.append("Quotation number prefix is required")
    if not _is_valid_amount(profile.tax_percentage) or float(profile.tax_percentage) > 100:
        problems.append(f"Tax percentage must be between 0 and 100, got {profile.tax_percentage}")

    return ValidationCheck(
        rule_name="business_profile",
        passed=not problems,
        message="Business profile valid" if not problems else "; ".join(problems),
        details={"tax_percentage": profile.tax_percentage},
    )


def _raise_on_failures(subject: str, checks: list[ValidationCheck]) -> None:
    failed = [check for check in checks if not check.passed]
    if failed:
        raise ValidationError(
            f"{subject} failed validation",
            problems=[check.message for check in failed],
            rules=[check.rule_name for check in failed],
        )


def validate_document(document: Document) -> list[ValidationCheck]:
    """
    Run every document rule before a document is committed.

    Returns:
        The passed checks

    Raises:
        ValidationError: If any rule fails, listing all failures
    """
    checks = [
        check_client(document),
        check_dates(document),
        check_line_items(document.items),
    ]
    _raise_on_failures(f"Document {document.number or document.id}", checks)
    return checks


def validate_profile(profile: BusinessProfile) -> list[ValidationCheck]:
    """
    Validate the business profile before it is saved.

    Raises:
        ValidationError: If the profile is incomplete
    """
    checks = [check_profile(profile)]
    _raise_on_failures("Business profile", checks)
    return checks
