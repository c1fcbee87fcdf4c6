"""Parsing checks against real-world Indian bank SMS formats."""
from datetime import datetime, timezone
from decimal import Decimal

from ..models import CategoryId, Direction
from ..services import sms_patterns
from ..services.sms_parser import (
    ACCEPT_THRESHOLD,
    extract_amount,
    extract_merchant,
    is_transaction_candidate,
    meets_threshold,
    parse_sms,
)

from .conftest import HDFC_DEBIT, OTP, SBI_CREDIT, UPI_DEBIT

WHEN = datetime(2026, 1, 8, 14, 22, tzinfo=timezone.utc)


def test_debit_with_merchant_and_card():
    parsed = parse_sms(HDFC_DEBIT, "HDFCBK", WHEN)

    assert parsed.is_transaction
    assert parsed.amount == Decimal("657.44")
    assert parsed.direction == Direction.DEBIT
    assert "ZOMATO" in parsed.merchant
    assert parsed.category == CategoryId.FOOD
    assert parsed.card_suffix == "0586"


def test_credit_from_bank_sender():
    parsed = parse_sms(SBI_CREDIT, "VM-SBIINB", WHEN)

    assert parsed.is_transaction
    assert parsed.direction == Direction.CREDIT
    assert parsed.amount == Decimal("5000.00")
    assert parsed.card_suffix == "5495"
    assert parsed.merchant == "JOHN DOE"


def test_upi_debit_takes_merchant_from_upi_tag():
    parsed = parse_sms(UPI_DEBIT, "AX-HDFCBK", WHEN)

    assert parsed.is_transaction
    assert parsed.amount == Decimal("499.00")
    assert parsed.merchant == "SWIGGY"
    assert parsed.card_suffix == "1234"
    assert parsed.category == CategoryId.FOOD


def test_otp_from_unknown_sender_is_rejected():
    parsed = parse_sms(OTP, "VK-NOTIFY", WHEN)

    assert not parsed.is_transaction
    assert parsed.amount is None
    assert parsed.direction == Direction.UNKNOWN
    assert parsed.confidence == 0


def test_short_or_empty_body_is_rejected():
    assert not parse_sms("", "HDFCBK", WHEN).is_transaction
    assert not parse_sms("Rs.5 paid", "HDFCBK", WHEN).is_transaction
    assert not parse_sms(None, None, WHEN).is_transaction


def test_missing_amount_is_rejected():
    parsed = parse_sms("Your card ending 1234 was debited today", "HDFCBK", WHEN)
    assert not parsed.is_transaction
    assert parsed.amount is None


def test_bank_signal_only_defaults_to_debit():
    parsed = parse_sms("Txn of Rs.250 on your card XX9876 at STARBUCKS.", "", WHEN)

    assert parsed.direction == Direction.DEBIT
    assert parsed.merchant == "STARBUCKS"
    # amount 30 + default direction 10 + merchant 15 + card 10 + category 15 + bank 15
    assert parsed.confidence == 95


def test_both_keyword_families_resolved_by_first_occurrence():
    debit_first = parse_sms(
        "INR 1,500 spent on HDFC Credit Card XX5678 at Amazon on 06-Jan-25", "HDFCBK", WHEN
    )
    assert debit_first.direction == Direction.DEBIT
    assert debit_first.amount == Decimal("1500")
    assert debit_first.merchant == "Amazon"
    assert debit_first.category == CategoryId.SHOPPING
    # amount 30 + mixed direction 15 + merchant 15 + card 10 + category 15 + bank 15
    assert debit_first.confidence == 100

    credit_first = parse_sms(
        "Refund of Rs.300 credited for your payment to MYNTRA", "AD-AXISBK", WHEN
    )
    assert credit_first.direction == Direction.CREDIT


def test_confidence_is_not_capped():
    parsed = parse_sms(HDFC_DEBIT, "HDFCBK", WHEN)
    # amount 30 + debit 25 + merchant 15 + card 10 + category 15 + bank 15
    assert parsed.confidence == 110


def test_threshold_boundary():
    assert ACCEPT_THRESHOLD == 30
    assert not meets_threshold(Decimal("10"), Direction.DEBIT, 29)
    assert meets_threshold(Decimal("10"), Direction.DEBIT, 30)
    assert not meets_threshold(Decimal("10"), Direction.UNKNOWN, 80)
    assert not meets_threshold(None, Direction.CREDIT, 80)


def test_amount_skips_zero_and_strips_separators():
    assert extract_amount("Rs.0.00 charged, amount: 120") == Decimal("120")
    assert extract_amount("INR 12,345.50 debited from A/c") == Decimal("12345.50")
    assert extract_amount("Transaction of 500 rupees completed") == Decimal("500")
    assert extract_amount("valid for 10 minutes") is None


def test_merchant_is_collapsed_and_truncated():
    long_name = "A" * 80
    merchant = extract_merchant(f"Rs.100 paid to {long_name} on 01/01/26")
    assert merchant == "A" * 50

    assert extract_merchant("Rs.100 paid to ACME    FOOD   CO on 01/01") == "ACME FOOD CO"


def test_merchant_needs_more_than_two_characters():
    # "to me" is too short, so the later UPI tag wins.
    assert extract_merchant("Rs.20 sent to me. UPI:CHAIWALA. Ref 1") == "CHAIWALA"


def test_pattern_order_is_part_of_the_contract():
    assert [p.name for p in sms_patterns.AMOUNT_PATTERNS] == [
        "currency_prefix",
        "keyword_prefix",
        "currency_suffix",
        "txn_keyword",
    ]
    assert [p.name for p in sms_patterns.MERCHANT_PATTERNS] == [
        "spent_on_card_at",
        "counterparty_verb",
        "upi_tag",
        "vpa",
        "at_to_from",
    ]
    assert list(sms_patterns.CATEGORY_KEYWORDS) == [
        CategoryId.FOOD,
        CategoryId.TRANSPORT,
        CategoryId.SHOPPING,
        CategoryId.BILLS,
        CategoryId.ENTERTAINMENT,
        CategoryId.HEALTH,
        CategoryId.GROCERIES,
        CategoryId.TRANSFER,
        CategoryId.ATM,
    ]


def test_category_never_outside_closed_set():
    parsed = parse_sms("Rs.750 debited from card XX1234 at SOMEPLACE", "ICICIB", WHEN)
    assert parsed.category in set(CategoryId)
    assert parsed.category == CategoryId.OTHER


def test_receiver_prefilter():
    assert is_transaction_candidate("AD-HDFCBK", "Your statement is ready")
    assert is_transaction_candidate("+919999999999", "Rs. 200 sent to Ravi")
    assert not is_transaction_candidate("+919999999999", "See you at 6?")
    assert not is_transaction_candidate("", "Rs.100 debited")
