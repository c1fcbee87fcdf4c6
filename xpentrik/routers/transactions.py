from typing import List

from fastapi import APIRouter, Depends, Query

from ..db import SQLiteExpenseStore
from ..dependencies import get_pipeline, get_store
from ..models import DEFAULT_CATEGORIES, CategoryInfo, Expense, ManualParseResult, ParseMessageRequest
from ..services.ingestion import SmsIngestionPipeline


router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.post("/parse_message", response_model=ManualParseResult)
def parse_message(
    payload: ParseMessageRequest,
    pipeline: SmsIngestionPipeline = Depends(get_pipeline),
) -> ManualParseResult:
    """Manual paste: parse one SMS and store it if it is a transaction.

    Rejected messages still return the parse preview so the app can show
    what was (and wasn't) recognised.
    """
    return pipeline.process_manual(
        payload.raw_message,
        sender=payload.sender,
        received_at=payload.timestamp,
    )


@router.get("/expenses", response_model=List[Expense])
def list_expenses(
    limit: int = Query(default=50, gt=0, le=1000),
    store: SQLiteExpenseStore = Depends(get_store),
) -> List[Expense]:
    """Return recent expenses (SMS and manual), newest first."""
    return store.load_expenses(limit=limit)


@router.get("/categories", response_model=List[CategoryInfo])
async def list_categories() -> List[CategoryInfo]:
    return DEFAULT_CATEGORIES
