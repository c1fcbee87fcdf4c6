"""Month-to-date spending insights for the analytics screen."""
from calendar import monthrange
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..models import Expense, SpendingInsights, TopCategory, TopDay
from .notifications import budget_alert


def _local(dt: datetime) -> datetime:
    return dt.astimezone().replace(tzinfo=None) if dt.tzinfo is not None else dt


def _month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    last_day = monthrange(year, month)[1]
    return (
        datetime(year, month, 1),
        datetime.combine(date(year, month, last_day), datetime.max.time()),
    )


def _previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


class ExpenseRange(Protocol):
    def expenses_between(self, start: datetime, end: datetime) -> List[Expense]:
        ...


def insights_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Start of last month to end of this month, as local-aware datetimes."""
    now = _local(now) if now is not None else datetime.now()
    start, _ = _month_bounds(*_previous_month(now.year, now.month))
    _, end = _month_bounds(now.year, now.month)
    return start.astimezone(), end.astimezone()


def spending_insights(
    expenses: Iterable[Expense],
    monthly_budget: float,
    now: Optional[datetime] = None,
    currency: str = "₹",
) -> SpendingInsights:
    now = _local(now) if now is not None else datetime.now()
    spend_only = [(e, _local(e.occurred_at)) for e in expenses if not e.is_income]

    month_start, month_end = _month_bounds(now.year, now.month)
    last_start, last_end = _month_bounds(*_previous_month(now.year, now.month))

    current = [(e, when) for e, when in spend_only if month_start <= when <= month_end]
    current_total = sum(float(e.amount) for e, _ in current)
    last_total = sum(float(e.amount) for e, when in spend_only if last_start <= when <= last_end)

    month_over_month = ((current_total - last_total) / last_total) * 100 if last_total > 0 else 0.0
    budget_progress = (current_total / monthly_budget) * 100 if monthly_budget > 0 else 0.0

    days_in_month = month_end.day
    days_remaining = max(0, days_in_month - now.day)
    average_daily = current_total / max(1, now.day)
    projected = average_daily * days_in_month

    day_totals: Dict[date, float] = {}
    category_totals: Dict[str, float] = {}
    for expense, when in current:
        day_totals[when.date()] = day_totals.get(when.date(), 0.0) + float(expense.amount)
        cat = expense.category.value
        category_totals[cat] = category_totals.get(cat, 0.0) + float(expense.amount)

    top_day = max(day_totals.items(), key=lambda item: item[1]) if day_totals else None
    top_category = max(category_totals.items(), key=lambda item: item[1]) if category_totals else None

    budget_velocity = monthly_budget / days_in_month
    if average_daily > budget_velocity:
        velocity_status = "over"
    elif average_daily > budget_velocity * 0.9:
        velocity_status = "warning"
    else:
        velocity_status = "good"

    tips = []
    if budget_progress > 90:
        tips.append("⚠️ You've used over 90% of your budget. Consider reducing non-essential spending.")
    elif budget_progress > 70:
        tips.append("💡 You're at 70% of your budget. Keep an eye on your spending.")

    if month_over_month > 20:
        tips.append("📈 Your spending increased significantly this month. Review your expenses.")
    elif month_over_month < -20:
        tips.append("📉 Great! You spent less this month. Keep it up!")

    if projected > monthly_budget:
        tips.append(
            f"💰 At this rate, you'll exceed your budget by {currency}{projected - monthly_budget:.0f}."
        )

    if top_category and top_category[1] > current_total * 0.4:
        tips.append(
            f"🎯 {top_category[0]} accounts for over 40% of your spending. Consider reviewing this category."
        )

    alert = budget_alert(budget_progress)

    return SpendingInsights(
        current_month_total=current_total,
        last_month_total=last_total,
        month_over_month_change=month_over_month,
        budget_progress=budget_progress,
        days_remaining=days_remaining,
        average_daily_spend=average_daily,
        projected_monthly=projected,
        top_day=TopDay(date=top_day[0], amount=top_day[1]) if top_day else None,
        top_category=TopCategory(name=top_category[0], amount=top_category[1]) if top_category else None,
        spending_velocity=average_daily,
        budget_velocity=budget_velocity,
        velocity_status=velocity_status,
        tips=tips or ["✅ Your spending looks good! Keep tracking your expenses."],
        is_over_budget=budget_progress >= 100,
        is_near_budget=90 <= budget_progress < 100,
        budget_alert_title=alert[0] if alert else None,
        budget_alert_body=alert[1] if alert else None,
    )


def store_insights(
    store: ExpenseRange,
    monthly_budget: float,
    now: Optional[datetime] = None,
    currency: str = "₹",
) -> SpendingInsights:
    """Insights computed from only the rows the two compared months need."""
    start, end = insights_window(now)
    return spending_insights(
        store.expenses_between(start, end),
        monthly_budget=monthly_budget,
        now=now,
        currency=currency,
    )
