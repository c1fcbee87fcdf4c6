"""Runtime settings loaded from the environment (and an optional ``.env``)."""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from .logging_config import get_logger

# Load environment variables from .env file in the package directory
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

logger = get_logger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent / "xpentrik.db"


@dataclass(frozen=True)
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    log_level: str = "INFO"
    ledger_capacity: int = 1000
    pending_queue_cap: int = 50
    scan_days: int = 7
    scan_max_count: int = 200
    poll_interval_seconds: float = 5.0
    monthly_budget: float = 50000.0
    currency_symbol: str = "₹"
    sms_source: str = "none"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("[Config] Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[Config] Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings.

    Call ``get_settings.cache_clear()`` after changing the environment
    (tests do this through ``monkeypatch``).
    """
    db_path = os.getenv("XPENTRIK_DB_PATH")
    return Settings(
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        log_level=os.getenv("XPENTRIK_LOG_LEVEL", "INFO"),
        ledger_capacity=_env_int("XPENTRIK_LEDGER_CAPACITY", 1000),
        pending_queue_cap=_env_int("XPENTRIK_PENDING_QUEUE_CAP", 50),
        scan_days=_env_int("XPENTRIK_SCAN_DAYS", 7),
        scan_max_count=_env_int("XPENTRIK_SCAN_MAX_COUNT", 200),
        poll_interval_seconds=_env_float("XPENTRIK_POLL_INTERVAL_SECONDS", 5.0),
        monthly_budget=_env_float("XPENTRIK_MONTHLY_BUDGET", 50000.0),
        currency_symbol=os.getenv("XPENTRIK_CURRENCY_SYMBOL", "₹"),
        sms_source=os.getenv("XPENTRIK_SMS_SOURCE", "none").strip().lower(),
    )
