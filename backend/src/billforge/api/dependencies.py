"""
Shared FastAPI dependencies.

The billing service is created once per process from settings; tests
replace it through ``app.dependency_overrides[get_billing_service]``.
"""

import logging

from billforge.config import get_settings
from billforge.infrastructure.store import InMemoryRecordStore, RecordStore
from billforge.services.billing import BillingService
from billforge.services.suggestions import build_suggester

logger = logging.getLogger(__name__)


# Service instance (created on first request)
_billing_service: BillingService | None = None


def build_store() -> RecordStore:
    """SQL store when a database is configured, otherwise in-memory."""
    settings = get_settings()
    if settings.database_url is None:
        logger.warning("DATABASE_URL not set; records are kept in memory only")
        return InMemoryRecordStore()

    from billforge.infrastructure.database import SqlRecordStore
    return SqlRecordStore()


def get_billing_service() -> BillingService:
    """Get or create billing service instance."""
    global _billing_service
    if _billing_service is None:
        settings = get_settings()
        _billing_service = BillingService(
            store=build_store(),
            suggester=build_suggester(settings),
            snapshot_tax_rate=settings.snapshot_tax_rate,
            numbering_max_attempts=settings.numbering_max_attempts,
        )
    return _billing_service
