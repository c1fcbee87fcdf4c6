from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from ..db import SQLiteExpenseStore
from ..dependencies import get_sms_source, get_store
from ..main import app
from ..models import RawMessage
from ..services.ingestion import SmsIngestionPipeline
from ..services.sms_source import LocalSmsSource


HDFC_DEBIT = "Spent Rs.657.44 On HDFC Bank Card 0586 At ZOMATO On 2026-01-08:14:22:20.Not You?"
SBI_CREDIT = "Rs.5000.00 credited to your A/C *5495 on 08/01/26. NEFT from JOHN DOE"
UPI_DEBIT = "Rs.499.00 debited from A/c XX1234 on 06-Jan-25. UPI:SWIGGY. Avl Bal:Rs.15,234.50"
OTP = "Your OTP is 482917, valid for 10 minutes"


def make_message(body: str, sender: str = "AD-HDFCBK", minute: int = 0, day: int = 8) -> RawMessage:
    return RawMessage(
        body=body,
        sender=sender,
        received_at=datetime(2026, 1, day, 14, minute, tzinfo=timezone.utc),
    )


@pytest.fixture
def store(tmp_path):
    s = SQLiteExpenseStore(tmp_path / "xpentrik-test.db")
    s.init_db()
    return s


@pytest.fixture
def pipeline(store):
    return SmsIngestionPipeline(store)


@pytest.fixture
def sms_source(store):
    return LocalSmsSource(store)


@pytest.fixture
def client(store, sms_source):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_sms_source] = lambda: sms_source
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
