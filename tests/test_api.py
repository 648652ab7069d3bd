import base64

import pytest
from fastapi.testclient import TestClient

from conftest import make_png

API = "/api/v1"

INVOICE_BODY = {
    "kind": "INVOICE",
    "client_name": "TechCorp Ltd",
    "client_email": "accounts@techcorp.example",
    "issue_date": "2024-01-05",
    "due_date": "2024-02-05",
    "items": [
        {"id": "1", "description": "Website design", "quantity": 2, "unit_price": 50},
        {"id": "2", "description": "Hosting setup", "quantity": 1, "unit_price": 25.5},
    ],
}


def _create(client: TestClient, **overrides) -> dict:
    response = client.post(f"{API}/documents", json={**INVOICE_BODY, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["store"] == "memory"
    assert data["suggestions"] is False


def test_profile_roundtrip_with_logo(client: TestClient) -> None:
    profile = client.get(f"{API}/profile").json()
    assert profile["name"] == "Sandpix Studio"

    logo = base64.b64encode(make_png()).decode("ascii")
    response = client.put(f"{API}/profile", json={**profile, "logo_image": logo, "tax_percentage": 10})
    assert response.status_code == 200
    assert response.json()["logo_image"] == logo
    assert client.get(f"{API}/profile").json()["tax_percentage"] == 10


def test_invalid_profile_is_rejected(client: TestClient) -> None:
    profile = client.get(f"{API}/profile").json()
    response = client.put(f"{API}/profile", json={**profile, "tax_percentage": 150})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"

    response = client.put(f"{API}/profile", json={**profile, "logo_image": "%%%"})
    assert response.status_code == 422


def test_invoice_lifecycle(client: TestClient) -> None:
    document = _create(client)
    assert document["status"] == "Draft"
    assert document["number"].startswith("INV-")
    assert document["is_editable"] is True

    totals = client.get(f"{API}/documents/{document['id']}/totals").json()
    assert totals["total"] == pytest.approx(135.54)
    assert totals["display"]["total"] == "USD 135.54"

    paid = client.post(f"{API}/documents/{document['id']}/status", json={"status": "Paid"}).json()
    assert paid["previous_status"] == "Draft"
    assert paid["transaction"]["amount"] == pytest.approx(135.54)
    assert paid["transaction"]["reference"] == document["number"]

    again = client.post(f"{API}/documents/{document['id']}/status", json={"status": "Paid"}).json()
    assert again["transaction"] is None
    assert len(client.get(f"{API}/ledger").json()) == 1

    locked = client.put(f"{API}/documents/{document['id']}", json={"notes": "late edit"})
    assert locked.status_code == 422
    assert locked.json()["code"] == "DOCUMENT_LOCKED"


def test_unknown_status_is_422(client: TestClient) -> None:
    document = _create(client)
    response = client.post(f"{API}/documents/{document['id']}/status", json={"status": "Cancelled"})
    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_STATUS"


def test_edit_keeps_number(client: TestClient) -> None:
    document = _create(client)
    response = client.put(
        f"{API}/documents/{document['id']}",
        json={"client_email": None, "items": [{"description": "Retainer", "quantity": 1, "unit_price": 400}]},
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["number"] == document["number"]
    assert updated["client_email"] is None
    assert updated["client_name"] == "TechCorp Ltd"
    assert [item["description"] for item in updated["items"]] == ["Retainer"]


def test_invalid_document_is_rejected(client: TestClient) -> None:
    response = client.post(f"{API}/documents", json={**INVOICE_BODY, "due_date": "2023-12-01"})
    assert response.status_code == 422
    assert response.json()["problems"]


def test_missing_document_is_404(client: TestClient) -> None:
    assert client.get(f"{API}/documents/nope").status_code == 404
    assert client.post(f"{API}/documents/nope/status", json={"status": "Paid"}).status_code == 404


def test_delete_document(client: TestClient) -> None:
    document = _create(client)
    assert client.delete(f"{API}/documents/{document['id']}").status_code == 204
    assert client.get(f"{API}/documents/{document['id']}").status_code == 404


def test_list_documents_by_kind(client: TestClient) -> None:
    _create(client)
    _create(client, kind="QUOTATION")
    quotes = client.get(f"{API}/documents", params={"kind": "QUOTATION"}).json()
    assert [d["kind"] for d in quotes] == ["QUOTATION"]
    assert len(client.get(f"{API}/documents").json()) == 2


def test_layout_is_stable(client: TestClient) -> None:
    document = _create(client)
    first = client.get(f"{API}/documents/{document['id']}/layout").json()
    second = client.get(f"{API}/documents/{document['id']}/layout").json()
    assert first["page_count"] == 1
    assert first["fingerprint"] == second["fingerprint"]
    texts = [i["text"] for i in first["pages"][0]["instructions"] if i["kind"] == "text"]
    assert "Page 1 of 1" in texts


def test_pdf_download(client: TestClient) -> None:
    document = _create(client)
    response = client.get(f"{API}/documents/{document['id']}/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"INVOICE_{document['number']}.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_live_totals(client: TestClient) -> None:
    items = INVOICE_BODY["items"]
    at_profile_rate = client.post(f"{API}/totals", json={"items": items}).json()
    assert at_profile_rate["tax_amount"] == pytest.approx(10.04)

    untaxed = client.post(f"{API}/totals", json={"items": items, "tax_percentage": 0}).json()
    assert untaxed["total"] == pytest.approx(125.50)

    empty = client.post(f"{API}/totals", json={}).json()
    assert empty["total"] == 0


def test_live_totals_count_malformed_numbers_as_zero(client: TestClient) -> None:
    response = client.post(
        f"{API}/totals",
        json={
            "items": [
                {"description": None, "quantity": None, "unit_price": 10},
                {"quantity": 2, "unit_price": "abc"},
                {"quantity": "", "unit_price": 5},
                {"quantity": "3", "unit_price": 4},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["subtotal"] == pytest.approx(12.0)
    assert body["total"] == pytest.approx(12.96)


def test_ledger_entries_and_summary(client: TestClient) -> None:
    sale = client.post(
        f"{API}/ledger",
        json={"kind": "SALE", "category": "Consulting", "amount": 800, "date": "2024-02-10"},
    )
    assert sale.status_code == 201
    client.post(f"{API}/ledger", json={"kind": "EXPENSE", "category": "Rent", "amount": 200})

    summary = client.get(f"{API}/ledger/summary").json()
    assert summary == {
        "total_sales": 800,
        "total_expenses": 200,
        "profit": 600,
        "profit_margin": 75,
        "transaction_count": 2,
    }

    assert client.delete(f"{API}/ledger/{sale.json()['id']}").status_code == 204
    assert client.get(f"{API}/ledger/summary").json()["transaction_count"] == 1


def test_clients_and_catalog(client: TestClient) -> None:
    saved = client.post(f"{API}/clients", json={"name": "Acme Corp", "email": "billing@acme.example"})
    assert saved.status_code == 201
    duplicate = client.post(f"{API}/clients", json={"name": "Someone", "email": "BILLING@acme.example"})
    assert duplicate.status_code == 422

    entry = client.post(f"{API}/catalog", json={"description": "Logo design", "unit_price": 150}).json()
    document = _create(client, items=[])
    updated = client.post(f"{API}/documents/{document['id']}/items/{entry['id']}").json()
    assert updated["items"][0]["quantity"] == 1

    filled = client.post(f"{API}/documents/{document['id']}/client/{saved.json()['id']}").json()
    assert filled["client_name"] == "Acme Corp"

    assert client.delete(f"{API}/catalog/{entry['id']}").status_code == 204
    assert client.get(f"{API}/catalog").json() == []


def test_suggestions_unavailable_without_service(client: TestClient) -> None:
    response = client.post(f"{API}/suggestions/terms")
    assert response.status_code == 503
    assert response.json()["code"] == "SUGGESTION_UNAVAILABLE"
    assert client.post(f"{API}/suggestions/line-items", json={"count": 2}).status_code == 503
