"""Notification collaborator: tells the user an expense was recorded."""
from typing import Optional, Protocol, Tuple

from ..logging_config import get_logger
from ..models import Expense

logger = get_logger(__name__)


class Notifier(Protocol):
    def expense_added(self, expense: Expense) -> None:
        ...


def expense_added_message(expense: Expense, currency: str = "₹") -> Tuple[str, str]:
    title = "💰 Income Added" if expense.is_income else "💸 Expense Added"
    body = f"{currency}{expense.amount} - {expense.description or 'Transaction'}"
    return title, body


def budget_alert(percentage: float) -> Optional[Tuple[str, str]]:
    """Title and body for a budget alert, or ``None`` below 80%."""
    if percentage >= 100:
        return "⚠️ Budget Exceeded!", "You've exceeded your monthly budget. Review your spending."
    if percentage >= 90:
        return (
            "⚡ Budget Warning",
            f"You've used {percentage:.0f}% of your budget. Be careful with spending.",
        )
    if percentage >= 80:
        return "💡 Budget Update", f"You've used {percentage:.0f}% of your budget this month."
    return None


class LogNotifier:
    """Writes notifications to the log; the phone renders the real ones."""

    def __init__(self, currency: str = "₹") -> None:
        self.currency = currency

    def expense_added(self, expense: Expense) -> None:
        title, body = expense_added_message(expense, self.currency)
        logger.info("[Notify] %s: %s", title, body)


def notify_safely(notifier: Optional[Notifier], expense: Expense) -> None:
    """Fire-and-forget; a failing notifier never affects ingestion."""
    if notifier is None:
        return
    try:
        notifier.expense_added(expense)
    except Exception as exc:
        logger.warning("[Notify] Failed to send expense notification: %s", exc)
