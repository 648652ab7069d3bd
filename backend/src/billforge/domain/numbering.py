"""
Human-facing document numbers.

Numbers look like ``INV-4821``: the profile prefix for the document kind
and a 4-digit suffix drawn uniformly from 1000-9999. A number is assigned
once when the document is created and never changes.

Random suffixes can collide. When the caller passes the numbers already
in use, the assigner redraws until it finds a free one or runs out of
attempts.
"""

import logging
import random
from collections.abc import Collection

from .errors import NumberingExhaustedError
from .models import BusinessProfile, DocumentKind

logger = logging.getLogger(__name__)


SUFFIX_MIN = 1000
SUFFIX_MAX = 9999
DEFAULT_MAX_ATTEMPTS = 50


def format_number(prefix: str, suffix: int) -> str:
    return f"{prefix}-{suffix}"


def assign_number(
    kind: DocumentKind,
    profile: BusinessProfile,
    rng: random.Random | None = None,
    existing: Collection[str] = (),
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Draw a document number for a new document.

    Args:
        kind: Quotation or Invoice, selects the prefix
        profile: Business profile holding the prefixes
        rng: Random source (module-level generator if None)
        existing: Numbers already in use; collisions are redrawn
        max_attempts: Upper bound on draws when ``existing`` is non-empty

    Returns:
        A number of the form ``<prefix>-<NNNN>``

    Raises:
        NumberingExhaustedError: If every draw collided
    """
    prefix = profile.prefix_for(kind)
    draw = (rng or random).randint

    for attempt in range(1, max_attempts + 1):
        number = format_number(prefix, draw(SUFFIX_MIN, SUFFIX_MAX))
        if number not in existing:
            return number
        logger.warning(f"Document number collision on {number} (attempt {attempt})")

    raise NumberingExhaustedError(prefix, max_attempts)
