import pytest

from ..config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for name in ("XPENTRIK_LEDGER_CAPACITY", "XPENTRIK_SCAN_DAYS", "XPENTRIK_SMS_SOURCE"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.ledger_capacity == 1000
    assert settings.scan_days == 7
    assert settings.scan_max_count == 200
    assert settings.sms_source == "none"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("XPENTRIK_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("XPENTRIK_LEDGER_CAPACITY", "25")
    monkeypatch.setenv("XPENTRIK_SMS_SOURCE", " Local ")

    settings = get_settings()

    assert settings.db_path == tmp_path / "x.db"
    assert settings.ledger_capacity == 25
    assert settings.sms_source == "local"


def test_invalid_number_falls_back(monkeypatch):
    monkeypatch.setenv("XPENTRIK_MONTHLY_BUDGET", "lots")
    assert get_settings().monthly_budget == 50000.0
