"""SQLite-backed storage for expenses, the processed-SMS ledger and the
background capture queue."""
import sqlite3
import threading
import time
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Union

from .errors import StorageError
from .logging_config import get_logger
from .models import CategoryId, Expense, RawMessage

logger = get_logger(__name__)


class ExpenseStore(Protocol):
    """What the ingestion pipeline needs from persistent storage."""

    def load_expenses(self) -> List[Expense]:
        ...

    def append_expense(self, expense: Expense, fingerprint: Optional[str] = None) -> Expense:
        ...

    def load_processed_fingerprints(self) -> List[str]:
        ...

    def save_processed_fingerprints(self, fingerprints: Sequence[str]) -> None:
        ...


_EXPENSE_COLUMNS = (
    "id, amount, category, description, occurred_at, source, is_income, "
    "raw_message, sender, card_suffix, confidence, created_at"
)


def _utc(dt: datetime) -> datetime:
    # Naive datetimes are taken as local time.
    return dt.astimezone(timezone.utc)


def _stored_time(dt: datetime) -> str:
    # Fixed-width UTC text so SQL comparisons match chronological order.
    return _utc(dt).isoformat(timespec="microseconds")


def _row_to_expense(row: sqlite3.Row) -> Expense:
    return Expense(
        id=row["id"],
        amount=Decimal(row["amount"]),
        category=row["category"],
        description=row["description"] or "",
        occurred_at=datetime.fromisoformat(row["occurred_at"]),
        source=row["source"],
        is_income=bool(row["is_income"]),
        raw_message=row["raw_message"],
        sender=row["sender"],
        card_suffix=row["card_suffix"],
        confidence=row["confidence"],
        created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
    )


class SQLiteExpenseStore:
    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self._id_lock = threading.Lock()
        self._last_id = 0

    def get_connection(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open database at {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self.get_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS expenses (
                    id TEXT PRIMARY KEY,
                    amount TEXT NOT NULL,
                    category TEXT NOT NULL,
                    description TEXT,
                    occurred_at TEXT NOT NULL,
                    source TEXT NOT NULL,
                    is_income INTEGER NOT NULL DEFAULT 0,
                    raw_message TEXT,
                    sender TEXT,
                    card_suffix TEXT,
                    confidence INTEGER,
                    created_at TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS processed_sms (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    fingerprint TEXT NOT NULL UNIQUE
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS pending_sms (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sender TEXT NOT NULL,
                    body TEXT NOT NULL,
                    received_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_expenses_occurred ON expenses(occurred_at)")
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to initialise database: {exc}") from exc
        finally:
            conn.close()
        logger.info("[DB] Using SQLite database at %s", self.db_path)

    def _next_id(self) -> str:
        # Creation-time derived and strictly increasing within this store.
        with self._id_lock:
            self._last_id = max(time.time_ns(), self._last_id + 1)
            return str(self._last_id)

    # Expenses

    def append_expense(self, expense: Expense, fingerprint: Optional[str] = None) -> Expense:
        """Persist a new expense; returns the stored copy with id and createdAt.

        When ``fingerprint`` is given it is recorded as processed in the same
        transaction, so a stored SMS expense always has its ledger entry.
        """
        saved = expense.model_copy(
            update={
                "id": self._next_id(),
                "occurred_at": _utc(expense.occurred_at),
                "created_at": datetime.now(timezone.utc),
            }
        )
        conn = self.get_connection()
        try:
            with conn:
                conn.execute(
                    f"""
                    INSERT INTO expenses ({_EXPENSE_COLUMNS})
                    VALUES (:id, :amount, :category, :description, :occurred_at, :source,
                            :is_income, :raw_message, :sender, :card_suffix, :confidence, :created_at)
                    """,
                    {
                        "id": saved.id,
                        "amount": str(saved.amount),
                        "category": saved.category.value,
                        "description": saved.description,
                        "occurred_at": _stored_time(saved.occurred_at),
                        "source": saved.source.value,
                        "is_income": int(saved.is_income),
                        "raw_message": saved.raw_message,
                        "sender": saved.sender,
                        "card_suffix": saved.card_suffix,
                        "confidence": saved.confidence,
                        "created_at": _stored_time(saved.created_at),
                    },
                )
                if fingerprint is not None:
                    conn.execute(
                        "INSERT OR IGNORE INTO processed_sms (fingerprint) VALUES (?)",
                        (fingerprint,),
                    )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to save expense: {exc}") from exc
        finally:
            conn.close()
        return saved

    def _select_expenses(
        self, where: str = "", params: tuple = (), limit: Optional[int] = None
    ) -> List[Expense]:
        query = f"SELECT {_EXPENSE_COLUMNS} FROM expenses {where} ORDER BY occurred_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params = params + (limit,)
        conn = self.get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to load expenses: {exc}") from exc
        finally:
            conn.close()
        return [_row_to_expense(row) for row in rows]

    def load_expenses(self, limit: Optional[int] = None) -> List[Expense]:
        """Stored expenses, newest first."""
        return self._select_expenses(limit=limit)

    def expenses_between(self, start: datetime, end: datetime) -> List[Expense]:
        """Expenses that occurred in ``[start, end]`` (inclusive), newest first."""
        return self._select_expenses(
            "WHERE occurred_at BETWEEN ? AND ?", (_stored_time(start), _stored_time(end))
        )

    def expenses_by_category(self, category: CategoryId) -> List[Expense]:
        return self._select_expenses("WHERE category = ?", (CategoryId(category).value,))

    def total_spent(self, start: datetime, end: datetime) -> Decimal:
        """Sum of non-income amounts in ``[start, end]``."""
        return sum(
            (e.amount for e in self.expenses_between(start, end) if not e.is_income),
            Decimal("0"),
        )

    # Processed SMS ledger

    def load_processed_fingerprints(self) -> List[str]:
        conn = self.get_connection()
        try:
            rows = conn.execute("SELECT fingerprint FROM processed_sms ORDER BY seq").fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to load processed SMS ids: {exc}") from exc
        finally:
            conn.close()
        return [row["fingerprint"] for row in rows]

    def save_processed_fingerprints(self, fingerprints: Sequence[str]) -> None:
        """Replace the stored ledger with ``fingerprints`` (oldest first)."""
        conn = self.get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM processed_sms")
                conn.executemany(
                    "INSERT INTO processed_sms (fingerprint) VALUES (?)",
                    [(fp,) for fp in fingerprints],
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to save processed SMS ids: {exc}") from exc
        finally:
            conn.close()

    # Background capture queue

    def push_pending(self, message: RawMessage, cap: int = 50) -> int:
        """Queue a captured SMS, keeping only the newest ``cap`` entries."""
        conn = self.get_connection()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO pending_sms (sender, body, received_at) VALUES (?, ?, ?)",
                    (message.sender, message.body, message.received_at.isoformat()),
                )
                conn.execute(
                    """
                    DELETE FROM pending_sms WHERE id NOT IN (
                        SELECT id FROM pending_sms ORDER BY id DESC LIMIT ?
                    )
                    """,
                    (cap,),
                )
                total = conn.execute("SELECT COUNT(*) FROM pending_sms").fetchone()[0]
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to queue SMS: {exc}") from exc
        finally:
            conn.close()
        return total

    def load_pending(self) -> List[RawMessage]:
        conn = self.get_connection()
        try:
            rows = conn.execute(
                "SELECT sender, body, received_at FROM pending_sms ORDER BY id"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to load pending SMS: {exc}") from exc
        finally:
            conn.close()
        return [
            RawMessage(
                sender=row["sender"],
                body=row["body"],
                received_at=datetime.fromisoformat(row["received_at"]),
            )
            for row in rows
        ]

    def clear_pending(self) -> None:
        conn = self.get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM pending_sms")
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to clear pending SMS: {exc}") from exc
        finally:
            conn.close()
