from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from settlement.core.dependencies import get_db_session
from settlement.main import app
from settlement.services.invoice_service import InvoiceService


@pytest.fixture
def api(isolated_session_factory):
    def _override():
        db = isolated_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_session] = _override
    yield TestClient(app), isolated_session_factory
    app.dependency_overrides.pop(get_db_session, None)


def _seeded(session_factory, seed_contract, **kwargs):
    db = session_factory()
    try:
        seeded = seed_contract(db, **kwargs)
        return {key: row.id for key, row in seeded.items()}
    finally:
        db.close()


def test_health_and_root(api):
    client, _ = api
    assert client.get("/api/v1/health").json()["status"] == "ok"
    assert client.get("/").json()["api_prefix"] == "/api/v1"


def test_create_invoice_is_idempotent(api, seed_contract):
    client, factory = api
    ids = _seeded(factory, seed_contract, contractor_support=True)

    created = client.post("/api/v1/invoices", json={"contract_id": ids["contract"], "type": "completion"})
    assert created.status_code == 201
    body = created.json()
    assert body["already_exists"] is False
    assert body["invoice"]["status"] == "issued"
    assert body["invoice"]["final_amount"] == 826_068
    assert body["invoice"]["fee_amount"] == 0

    again = client.post("/api/v1/invoices", json={"contract_id": ids["contract"], "type": "completion"})
    assert again.status_code == 200
    assert again.json()["already_exists"] is True
    assert again.json()["invoice"]["id"] == body["invoice"]["id"]


def test_lifecycle_errors_map_to_http_codes(api, seed_contract):
    client, factory = api
    ids = _seeded(factory, seed_contract, client_support=True)

    assert client.post("/api/v1/invoices", json={"contract_id": 9999}).status_code == 404
    assert client.post("/api/v1/invoices", json={"contract_id": ids["contract"], "type": "refund"}).status_code == 422

    invoice = client.post("/api/v1/invoices", json={"contract_id": ids["contract"], "type": "client"}).json()["invoice"]
    assert invoice["status"] == "draft"
    assert invoice["total_amount"] == 1_080_000

    assert client.post(f"/api/v1/invoices/{invoice['id']}/pay").status_code == 409
    issued = client.post(f"/api/v1/invoices/{invoice['id']}/issue")
    assert issued.status_code == 200
    assert issued.json()["issue_date"] is not None
    assert client.post(f"/api/v1/invoices/{invoice['id']}/issue").status_code == 409
    assert client.post(f"/api/v1/invoices/{invoice['id']}/pay").json()["status"] == "paid"
    assert client.get("/api/v1/invoices/424242").status_code == 404

    verification = client.get(f"/api/v1/invoices/{invoice['id']}/verify").json()
    assert verification == {"invoice_id": invoice["id"], "valid": True, "errors": []}

    listed = client.get("/api/v1/invoices", params={"status": "paid"}).json()["items"]
    assert [row["id"] for row in listed] == [invoice["id"]]


def test_invoice_pdf_download(api, seed_contract):
    client, factory = api
    ids = _seeded(factory, seed_contract)
    invoice = client.post("/api/v1/invoices", json={"contract_id": ids["contract"]}).json()["invoice"]

    response = client.get(f"/api/v1/invoices/{invoice['id']}/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_settings_round_trip_and_quote(api):
    client, _ = api
    assert client.get("/api/v1/settings").json()["support_fee_percent"] == 8.0
    assert client.put("/api/v1/settings", json={"support_fee_percent": 150}).status_code == 422

    updated = client.put("/api/v1/settings", json={"support_fee_percent": 10})
    assert updated.status_code == 200
    assert updated.json()["support_fee_percent"] == 10

    quote = client.post(
        "/api/v1/billing/quote",
        json={"contract_amount": 1_000_000, "type": "client", "client_support_enabled": True},
    ).json()
    assert quote["system_fee"] == 100_000
    assert quote["memo"] == "client support fee 10%"

    assert client.post("/api/v1/billing/quote", json={"contract_amount": -5}).status_code == 422


def test_billing_preview_and_close(api, seed_contract):
    client, factory = api
    preview = client.post(
        "/api/v1/billing/preview",
        json={"contracts": [{"bid_amount": 600_000, "support_enabled": True}, {"bid_amount": 600_000}], "support_fee_percent": 8},
    ).json()
    assert preview["total_withholding"] == 133_138
    assert preview["contract_count"] == 2

    _seeded(factory, seed_contract)
    closed = client.post("/api/v1/billing/close-contractors", params={"year": 2026, "month": 10})
    assert closed.status_code == 200
    assert closed.json()["period"] == {"start": "2026-09-21", "end": "2026-10-20", "pay_date": "2026-10-31"}

    summary = client.get("/api/v1/billing/monthly-summary", params={"year": 2026, "month": 13})
    assert summary.status_code == 422


def test_org_billing_endpoints(api, seed_contract):
    client, factory = api
    ids = _seeded(factory, seed_contract, bid_amount=1_000_000, client_support=True)
    db = factory()
    try:
        InvoiceService(db=db).create_invoice(ids["contract"], "completion", today=date(2026, 10, 5))
    finally:
        db.close()

    summary = client.get("/api/v1/billing/org-summary", params={"year": 2026, "month": 10}).json()
    assert summary["billing_period"]["start_date"] == "2026-09-21"
    assert summary["organizations"][0]["org_id"] == ids["organization"]
    assert summary["grand_total_amount"] == 1_380_000

    generated = client.post("/api/v1/billing/org-invoices", json={"year": 2026, "month": 10})
    assert generated.status_code == 201
    assert generated.json()["created_invoices"][0]["total_amount"] == 1_380_000
    repeated = client.post("/api/v1/billing/org-invoices", json={"year": 2026, "month": 10}).json()
    assert repeated["errors"][0]["invoice_id"] == generated.json()["created_invoices"][0]["invoice_id"]
    assert client.post("/api/v1/billing/org-invoices", json={"year": 2030, "month": 1}).status_code == 422

    statement = client.post(
        "/api/v1/billing/org-statements",
        json={"org_id": ids["organization"], "year": 2026, "month": 10},
    )
    assert statement.status_code == 201
    assert statement.json()["statement"]["total_amount"] == 1_300_000
    assert statement.json()["statement"]["due_date"] == "2026-11-05"
    again = client.post(
        "/api/v1/billing/org-statements",
        json={"org_id": ids["organization"], "year": 2026, "month": 10},
    )
    assert again.status_code == 200
    assert again.json()["created"] is False
    missing = client.post("/api/v1/billing/org-statements", json={"org_id": 9999, "year": 2026, "month": 10})
    assert missing.status_code == 404
