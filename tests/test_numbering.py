import random
import re

import pytest

from billforge.domain.errors import NumberingExhaustedError
from billforge.domain.models import DocumentKind
from billforge.domain.numbering import SUFFIX_MAX, SUFFIX_MIN, assign_number, format_number


def test_number_uses_prefix_for_kind(profile) -> None:
    rng = random.Random(7)
    assert re.fullmatch(r"INV-\d{4}", assign_number(DocumentKind.INVOICE, profile, rng=rng))
    assert re.fullmatch(r"QT-\d{4}", assign_number(DocumentKind.QUOTATION, profile, rng=rng))


def test_suffix_stays_in_range(profile) -> None:
    rng = random.Random(1)
    for _ in range(500):
        suffix = int(assign_number(DocumentKind.INVOICE, profile, rng=rng).split("-")[1])
        assert SUFFIX_MIN <= suffix <= SUFFIX_MAX


def test_collisions_are_redrawn(profile) -> None:
    first = assign_number(DocumentKind.INVOICE, profile, rng=random.Random(3))
    second = assign_number(DocumentKind.INVOICE, profile, rng=random.Random(3), existing={first})
    assert second != first


def test_exhausted_when_every_number_is_taken(profile) -> None:
    taken = {format_number("INV", n) for n in range(SUFFIX_MIN, SUFFIX_MAX + 1)}
    with pytest.raises(NumberingExhaustedError) as exc_info:
        assign_number(DocumentKind.INVOICE, profile, existing=taken, max_attempts=5)
    assert exc_info.value.details == {"prefix": "INV", "attempts": 5}
