"""Turn an accepted :class:`ParsedTransaction` into an unsaved :class:`Expense`."""
from typing import Optional

from ..models import CategoryId, Direction, Expense, ExpenseSource, ParsedTransaction

INCOME_DESCRIPTION = "Money Received"
EXPENSE_DESCRIPTION = "SMS Transaction"


def materialize(parsed: ParsedTransaction) -> Optional[Expense]:
    """Build the expense record for a parsed SMS, or ``None`` if rejected.

    Credits are kept and tagged as income rather than dropped. The returned
    record has no id; the store assigns one when it is appended.
    """
    if not parsed.is_transaction:
        return None

    is_income = parsed.direction == Direction.CREDIT
    category = CategoryId.INCOME if is_income else parsed.category
    description = parsed.merchant or (INCOME_DESCRIPTION if is_income else EXPENSE_DESCRIPTION)

    return Expense(
        amount=parsed.amount,
        category=category,
        description=description,
        occurred_at=parsed.received_at,
        source=ExpenseSource.SMS,
        is_income=is_income,
        raw_message=parsed.raw_message,
        sender=parsed.sender,
        card_suffix=parsed.card_suffix,
        confidence=parsed.confidence,
    )
