"""SMS parser for Indian bank & payment messages.

``parse_sms`` turns one raw SMS into a :class:`ParsedTransaction` using the
ordered pattern library in :mod:`.sms_patterns`. Each matched signal adds to
an integer confidence score; a message is accepted as a transaction only
when it has an amount, a direction and a score of at least
``ACCEPT_THRESHOLD``. The score is not capped and is not a probability.

The parser is pure and never raises: malformed or non-financial input comes
back as a non-transaction.
"""
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence, Tuple

from ..models import CategoryId, Direction, ParsedTransaction
from .sms_patterns import (
    AMOUNT_PATTERNS,
    BANK_BODY_TOKENS,
    BANK_SENDERS,
    CARD_PATTERNS,
    CATEGORY_KEYWORDS,
    CREDIT_KEYWORDS,
    DEBIT_KEYWORDS,
    MERCHANT_PATTERNS,
    RECEIVER_BODY_KEYWORDS,
    RECEIVER_SENDER_FRAGMENTS,
    NamedPattern,
)

ACCEPT_THRESHOLD = 30
MIN_BODY_LENGTH = 10
MAX_MERCHANT_LENGTH = 50

SCORE_AMOUNT = 30
SCORE_SINGLE_DIRECTION = 25
SCORE_MIXED_DIRECTION = 15
SCORE_DEFAULT_DIRECTION = 10
SCORE_MERCHANT = 15
SCORE_CARD_SUFFIX = 10
SCORE_CATEGORY = 15
SCORE_BANK_SIGNAL = 15

_WHITESPACE = re.compile(r"\s+")


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _first_index(text: str, keywords: Sequence[str]) -> int:
    positions = [text.find(keyword) for keyword in keywords]
    hits = [pos for pos in positions if pos != -1]
    return min(hits) if hits else len(text) + 1


def has_bank_signal(sender: str, lower_body: str) -> bool:
    upper_sender = sender.upper()
    if _contains_any(upper_sender, BANK_SENDERS):
        return True
    return _contains_any(lower_body, BANK_BODY_TOKENS)


def extract_amount(body: str, patterns: Sequence[NamedPattern] = AMOUNT_PATTERNS) -> Optional[Decimal]:
    """Return the first positive amount found, trying patterns in order."""
    for pattern in patterns:
        match = pattern.regex.search(body)
        if not match:
            continue
        try:
            value = Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            continue
        if value > 0:
            return value
    return None


def resolve_direction(lower_body: str, has_debit: bool, has_credit: bool) -> Tuple[Direction, int]:
    if has_debit and not has_credit:
        return Direction.DEBIT, SCORE_SINGLE_DIRECTION
    if has_credit and not has_debit:
        return Direction.CREDIT, SCORE_SINGLE_DIRECTION
    if has_debit and has_credit:
        # Whichever keyword family shows up first in the text wins.
        debit_at = _first_index(lower_body, DEBIT_KEYWORDS)
        credit_at = _first_index(lower_body, CREDIT_KEYWORDS)
        direction = Direction.DEBIT if debit_at < credit_at else Direction.CREDIT
        return direction, SCORE_MIXED_DIRECTION
    # Bank-signal only: treat as an expense.
    return Direction.DEBIT, SCORE_DEFAULT_DIRECTION


def extract_merchant(body: str, patterns: Sequence[NamedPattern] = MERCHANT_PATTERNS) -> Optional[str]:
    for pattern in patterns:
        match = pattern.regex.search(body)
        if not match:
            continue
        merchant = _WHITESPACE.sub(" ", match.group(1)).strip()
        if len(merchant) > 2:
            return merchant[:MAX_MERCHANT_LENGTH].strip()
    return None


def extract_card_suffix(body: str, patterns: Sequence[NamedPattern] = CARD_PATTERNS) -> Optional[str]:
    for pattern in patterns:
        match = pattern.regex.search(body)
        if match:
            return match.group(1)
    return None


def infer_category(lower_body: str, merchant: Optional[str]) -> Optional[CategoryId]:
    """First category (in declaration order) with any keyword hit, else None."""
    text = f"{lower_body} {(merchant or '').lower()}"
    for category, keywords in CATEGORY_KEYWORDS.items():
        if _contains_any(text, keywords):
            return category
    return None


def meets_threshold(amount: Optional[Decimal], direction: Direction, confidence: int) -> bool:
    return amount is not None and direction != Direction.UNKNOWN and confidence >= ACCEPT_THRESHOLD


def parse_sms(
    body: Optional[str],
    sender: Optional[str] = "",
    received_at: Optional[datetime] = None,
) -> ParsedTransaction:
    """Classify one SMS and extract its transaction fields."""
    body = body or ""
    sender = sender or ""
    if received_at is None:
        received_at = datetime.now(timezone.utc)

    result = ParsedTransaction(raw_message=body, sender=sender, received_at=received_at)

    if len(body) < MIN_BODY_LENGTH:
        return result

    lower_body = body.lower()
    has_debit = _contains_any(lower_body, DEBIT_KEYWORDS)
    has_credit = _contains_any(lower_body, CREDIT_KEYWORDS)
    bank_signal = has_bank_signal(sender, lower_body)

    # Nothing financial about it; skip the regex work.
    if not (has_debit or has_credit or bank_signal):
        return result

    amount = extract_amount(body)
    if amount is None:
        return result
    confidence = SCORE_AMOUNT

    direction, direction_score = resolve_direction(lower_body, has_debit, has_credit)
    confidence += direction_score

    merchant = extract_merchant(body)
    if merchant:
        confidence += SCORE_MERCHANT

    card_suffix = extract_card_suffix(body)
    if card_suffix:
        confidence += SCORE_CARD_SUFFIX

    category = infer_category(lower_body, merchant)
    if category is not None:
        confidence += SCORE_CATEGORY

    if bank_signal:
        confidence += SCORE_BANK_SIGNAL

    return result.model_copy(
        update={
            "amount": amount,
            "direction": direction,
            "merchant": merchant,
            "card_suffix": card_suffix,
            "category": category or CategoryId.OTHER,
            "confidence": confidence,
            "is_transaction": meets_threshold(amount, direction, confidence),
        }
    )


def is_transaction_candidate(sender: Optional[str], body: Optional[str]) -> bool:
    """Pre-filter applied by the background receiver before queueing an SMS."""
    if not sender or not body:
        return False
    if _contains_any(sender.upper(), RECEIVER_SENDER_FRAGMENTS):
        return True
    return _contains_any(body.lower(), RECEIVER_BODY_KEYWORDS)
