"""FastAPI dependency providers. Tests swap these via ``app.dependency_overrides``."""
from functools import lru_cache

from fastapi import Depends

from .config import get_settings
from .db import SQLiteExpenseStore
from .services.ingestion import SmsIngestionPipeline
from .services.notifications import LogNotifier
from .services.sms_source import LocalSmsSource, SmsSource, UnsupportedSmsSource


@lru_cache(maxsize=1)
def get_store() -> SQLiteExpenseStore:
    store = SQLiteExpenseStore(get_settings().db_path)
    store.init_db()
    return store


@lru_cache(maxsize=1)
def _default_sms_source() -> SmsSource:
    settings = get_settings()
    if settings.sms_source == "local":
        return LocalSmsSource(get_store(), pending_cap=settings.pending_queue_cap)
    return UnsupportedSmsSource()


def get_sms_source() -> SmsSource:
    return _default_sms_source()


def get_pipeline(store: SQLiteExpenseStore = Depends(get_store)) -> SmsIngestionPipeline:
    settings = get_settings()
    return SmsIngestionPipeline(
        store,
        notifier=LogNotifier(settings.currency_symbol),
        ledger_capacity=settings.ledger_capacity,
    )
