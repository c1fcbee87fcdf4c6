from fastapi import APIRouter, Depends

from ..config import get_settings
from ..db import SQLiteExpenseStore
from ..dependencies import get_store
from ..models import SpendingInsights
from ..services.insights import store_insights


router = APIRouter()


@router.get("/insights", response_model=SpendingInsights)
def get_insights(store: SQLiteExpenseStore = Depends(get_store)) -> SpendingInsights:
    """Current-month spending against the configured monthly budget."""
    settings = get_settings()
    return store_insights(
        store,
        monthly_budget=settings.monthly_budget,
        currency=settings.currency_symbol,
    )
