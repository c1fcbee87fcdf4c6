from datetime import datetime, timezone

import pytest

from ..services.ledger import ProcessedLedger, fingerprint

WHEN = datetime(2026, 1, 8, 14, 22, 20, tzinfo=timezone.utc)


def test_fingerprint_is_deterministic():
    first = fingerprint("Rs.100 debited from A/c XX1234", WHEN.isoformat())
    second = fingerprint("Rs.100 debited from A/c XX1234", WHEN.isoformat())
    assert first == second
    assert first.isalnum()


def test_fingerprint_accepts_datetime_or_iso_string():
    assert fingerprint("body text here", WHEN) == fingerprint("body text here", WHEN.isoformat())


def test_fingerprint_only_looks_at_first_50_chars():
    prefix = "X" * 50
    assert fingerprint(prefix + " tail one", WHEN) == fingerprint(prefix + " tail two", WHEN)
    assert fingerprint("Rs.100 spent", WHEN) != fingerprint("Rs.101 spent", WHEN)


def test_fingerprint_depends_on_timestamp():
    later = datetime(2026, 1, 8, 14, 22, 21, tzinfo=timezone.utc)
    assert fingerprint("Rs.100 spent", WHEN) != fingerprint("Rs.100 spent", later)


def test_mark_processed_is_idempotent():
    ledger = ProcessedLedger()
    ledger.mark_processed("a")
    ledger.mark_processed("b")
    ledger.mark_processed("a")

    assert ledger.snapshot() == ["a", "b"]
    assert len(ledger) == 2
    assert "a" in ledger
    assert ledger.is_processed("b")
    assert not ledger.is_processed("c")


def test_eviction_drops_oldest_first():
    ledger = ProcessedLedger()
    for i in range(1, 1002):
        ledger.mark_processed(f"fp-{i}")

    assert len(ledger) == 1000
    assert not ledger.is_processed("fp-1")
    assert all(ledger.is_processed(f"fp-{i}") for i in range(2, 1002))


def test_loading_more_than_capacity_keeps_newest():
    ledger = ProcessedLedger(["a", "b", "c", "d"], capacity=2)
    assert ledger.snapshot() == ["c", "d"]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ProcessedLedger(capacity=0)
