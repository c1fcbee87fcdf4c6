from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from ..config import get_settings
from ..main import app
from ..models import RawMessage

from .conftest import HDFC_DEBIT, OTP


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_parse_message_basic(client):
    payload = {
        "raw_message": "INR 500.00 spent at Swiggy on your card",
    }

    response = client.post("/api/parse_message", json=payload)
    assert response.status_code == 200

    data = response.json()

    assert data["success"] is True
    assert float(data["expense"]["amount"]) == 500.0
    assert data["expense"]["category"] == "food"
    assert data["expense"]["isIncome"] is False
    assert data["expense"]["source"] == "sms"
    assert isinstance(data["expense"]["id"], str)


def test_parse_message_rejection_returns_preview(client):
    response = client.post("/api/parse_message", json={"raw_message": OTP, "sender": "VK-NOTIFY"})
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is False
    assert data["already_processed"] is False
    assert data["parsed"]["is_transaction"] is False


def test_parse_message_same_timestamp_is_already_processed(client):
    payload = {"raw_message": HDFC_DEBIT, "timestamp": "2026-01-08T14:22:20+00:00"}

    assert client.post("/api/parse_message", json=payload).json()["success"] is True
    data = client.post("/api/parse_message", json=payload).json()
    assert data["success"] is False
    assert data["already_processed"] is True


def test_ingest_batch_and_list_expenses(client):
    messages = [
        {"body": HDFC_DEBIT, "sender": "HDFCBK", "received_at": "2026-01-08T14:22:20+00:00"},
        {"body": OTP, "sender": "VK-NOTIFY", "received_at": "2026-01-08T14:25:00+00:00"},
    ]

    first = client.post("/api/sms/ingest", json={"messages": messages}).json()
    assert first["scanned_count"] == 2
    assert first["created"] == 1
    assert len(first["created_expenses"]) == 1
    assert first["rejected"] == 1

    second = client.post("/api/sms/ingest", json={"messages": messages}).json()
    assert second["created_expenses"] == []
    assert second["created"] == 0
    assert second["already_processed"] == 2

    listed = client.get("/api/expenses").json()
    assert len(listed) == 1
    assert listed[0]["description"] == "ZOMATO"
    assert listed[0]["cardLast4"] == "0586"


def test_live_capture_and_drain(client):
    message = {"body": HDFC_DEBIT, "sender": "AD-HDFCBK", "received_at": "2026-01-08T14:22:20+00:00"}

    captured = client.post("/api/sms/capture", json=message).json()
    assert captured["queued"] is True

    drained = client.post("/api/sms/drain").json()
    assert drained["created"] == 1
    assert len(drained["created_expenses"]) == 1

    live = client.post("/api/sms/live", json=message).json()
    assert live["already_processed"] == 1


def test_status_and_scan(client, sms_source):
    status = client.get("/api/sms/status").json()
    assert status["supported"] is True

    sms_source.add_to_inbox(
        RawMessage(body=HDFC_DEBIT, sender="HDFCBK", received_at=datetime.now(timezone.utc))
    )
    data = client.post("/api/sms/scan", json={"days": 7}).json()
    assert data["success"] is True
    assert data["result"]["scanned_count"] == 1
    assert data["result"]["created"] == 1


def test_categories_catalogue(client):
    ids = [c["id"] for c in client.get("/api/categories").json()]
    assert ids[0] == "income"
    assert ids[-1] == "other"
    assert len(ids) == 11


def test_insights_endpoint(client):
    client.post(
        "/api/parse_message",
        json={"raw_message": "INR 500.00 spent at Swiggy on your card"},
    )
    data = client.get("/api/insights").json()

    assert data["current_month_total"] == 500.0
    assert data["top_category"]["name"] == "food"


@pytest.fixture
def slow_poller(monkeypatch):
    monkeypatch.setenv("XPENTRIK_POLL_INTERVAL_SECONDS", "3600")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_background_poller_uses_overridden_source(client, sms_source, slow_poller):
    message = {"body": HDFC_DEBIT, "sender": "AD-HDFCBK", "received_at": "2026-01-08T14:22:20+00:00"}

    with TestClient(app) as running:
        poller = app.state.poller
        assert poller.source is sms_source

        assert running.post("/api/sms/capture", json=message).json()["queued"] is True
        result = poller.tick()

    assert result.created == 1
    assert sms_source.pending_messages() == []
    assert len(client.get("/api/expenses").json()) == 1
