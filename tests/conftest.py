import asyncio
import io
import os
import tempfile
from datetime import date

os.environ.pop("DATABASE_URL", None)
os.environ.pop("SUGGESTION_API_BASE", None)
os.environ.setdefault("EXPORT_PATH", tempfile.mkdtemp(prefix="billforge-exports-"))
os.environ.setdefault("DEBUG", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from billforge.api.dependencies import get_billing_service  # noqa: E402
from billforge.domain.models import (  # noqa: E402
    BusinessProfile,
    Document,
    DocumentKind,
    DocumentStatus,
    LineItem,
)
from billforge.infrastructure.store import InMemoryRecordStore  # noqa: E402
from billforge.main import app  # noqa: E402
from billforge.services.billing import BillingService  # noqa: E402

TODAY = date(2024, 3, 1)


def make_png(width: int = 200, height: int = 100) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (37, 99, 235)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def profile() -> BusinessProfile:
    return BusinessProfile(
        name="Sandpix Studio",
        email="hello@sandpix.example",
        phone="+1 555 0100",
        address="12 Harbour Road\nSuite 4\nPort Town",
        tax_id="TX-99812",
        currency_code="USD",
        tax_percentage=8,
        terms_text="1. Payment due within 30 days.\n2. Quotes valid for 14 days.",
        payment_instructions="Bank: First Harbour\nAccount: 0012 3456 78",
    )


@pytest.fixture()
def invoice() -> Document:
    return Document(
        id="doc-1",
        kind=DocumentKind.INVOICE,
        number="INV-4821",
        issue_date=date(2024, 1, 5),
        due_date=date(2024, 2, 5),
        client_name="TechCorp Ltd",
        client_email="accounts@techcorp.example",
        items=[
            LineItem("1", "Website design", 2, 50.00),
            LineItem("2", "Hosting setup", 1, 25.50),
        ],
        status=DocumentStatus.DRAFT,
    )


@pytest.fixture()
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def service(store: InMemoryRecordStore, profile: BusinessProfile) -> BillingService:
    billing = BillingService(store=store, today=lambda: TODAY)
    asyncio.run(billing.update_profile(profile))
    return billing


@pytest.fixture()
def client(service: BillingService):
    app.dependency_overrides[get_billing_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
