from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel


class TopDay(BaseModel):
    date: date
    amount: float


class TopCategory(BaseModel):
    name: str
    amount: float


class SpendingInsights(BaseModel):
    """Month-to-date spending summary shown on the analytics card.

    Income records are excluded from every total.
    """

    current_month_total: float
    last_month_total: float
    month_over_month_change: float
    budget_progress: float
    days_remaining: int
    average_daily_spend: float
    projected_monthly: float
    top_day: Optional[TopDay] = None
    top_category: Optional[TopCategory] = None
    spending_velocity: float
    budget_velocity: float
    velocity_status: Literal["good", "warning", "over"]
    tips: List[str]
    is_over_budget: bool
    is_near_budget: bool
    budget_alert_title: Optional[str] = None
    budget_alert_body: Optional[str] = None
