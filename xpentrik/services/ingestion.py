"""SMS ingestion pipeline.

All four SMS entry points (bulk inbox scan, live broadcast, background queue
drain, manual paste) run through :meth:`SmsIngestionPipeline.ingest` or the
same per-message routine. For each message:

1. compute the fingerprint and skip it if the ledger already has it;
2. parse it; if it materializes to an expense, append it to the store
   together with its fingerprint (one transaction), then report it;
3. if the parser rejects it, still mark it processed.

A store failure for one message is recorded in the batch result and leaves
that fingerprint unprocessed so the next scan retries it; the rest of the
batch continues. Ledger read-check-write is not atomic, so every batch holds
a process-wide lock from ledger load to ledger save.
"""
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterator, Optional, Sequence

from ..db import ExpenseStore
from ..errors import SmsSourceUnavailableError
from ..logging_config import get_logger
from ..models import (
    Expense,
    IngestFailure,
    IngestResult,
    ManualParseResult,
    ParsedTransaction,
    RawMessage,
    ScanResult,
)
from .ledger import DEFAULT_CAPACITY, ProcessedLedger, fingerprint
from .materializer import materialize
from .notifications import Notifier, notify_safely
from .sms_parser import parse_sms
from .sms_source import LocalSmsSource, SmsSource

logger = get_logger(__name__)

_INGEST_LOCK = threading.RLock()

MANUAL_SENDER = "MANUAL"


@contextmanager
def ingest_lock() -> Iterator[None]:
    """Serialize access to the ledger and the expense store."""
    with _INGEST_LOCK:
        yield


class Outcome(str, Enum):
    ALREADY_PROCESSED = "already_processed"
    CREATED = "created"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class MessageOutcome:
    status: Outcome
    fingerprint: str
    parsed: Optional[ParsedTransaction] = None
    expense: Optional[Expense] = None
    error: Optional[str] = None


class SmsIngestionPipeline:
    def __init__(
        self,
        store: ExpenseStore,
        notifier: Optional[Notifier] = None,
        ledger_capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.ledger_capacity = ledger_capacity

    def _load_ledger(self) -> ProcessedLedger:
        return ProcessedLedger(self.store.load_processed_fingerprints(), capacity=self.ledger_capacity)

    def _process_message(self, message: RawMessage, ledger: ProcessedLedger) -> MessageOutcome:
        fp = fingerprint(message.body, message.received_at)
        if ledger.is_processed(fp):
            logger.debug("[Ingest] SMS %s already processed", fp)
            return MessageOutcome(Outcome.ALREADY_PROCESSED, fp)

        parsed = parse_sms(message.body, message.sender, message.received_at)
        expense = materialize(parsed)
        if expense is None:
            ledger.mark_processed(fp)
            return MessageOutcome(Outcome.REJECTED, fp, parsed=parsed)

        try:
            saved = self.store.append_expense(expense, fingerprint=fp)
        except Exception as exc:
            # Left unprocessed so the next scan can retry it.
            logger.exception("[Ingest] Error saving expense from SMS %s (%s)", fp, message.sender)
            return MessageOutcome(Outcome.FAILED, fp, parsed=parsed, error=str(exc) or type(exc).__name__)

        ledger.mark_processed(fp)
        logger.debug("[Ingest] Expense saved from SMS: %s %s", saved.amount, saved.description)
        notify_safely(self.notifier, saved)
        return MessageOutcome(Outcome.CREATED, fp, parsed=parsed, expense=saved)

    def ingest(self, messages: Sequence[RawMessage]) -> IngestResult:
        """Process ``messages`` in order and report what was created."""
        result = IngestResult(scanned_count=len(messages))
        with ingest_lock():
            ledger = self._load_ledger()
            try:
                for message in messages:
                    outcome = self._process_message(message, ledger)
                    if outcome.status is Outcome.CREATED:
                        result.created_expenses.append(outcome.expense)
                    elif outcome.status is Outcome.ALREADY_PROCESSED:
                        result.already_processed += 1
                    elif outcome.status is Outcome.REJECTED:
                        result.rejected += 1
                    else:
                        result.failures.append(
                            IngestFailure(
                                fingerprint=outcome.fingerprint,
                                sender=message.sender,
                                error=outcome.error or "",
                            )
                        )
            finally:
                self.store.save_processed_fingerprints(ledger.snapshot())

        logger.info(
            "[Ingest] Scanned %d SMS: %d created, %d already processed, %d rejected, %d failed",
            result.scanned_count,
            result.created,
            result.already_processed,
            result.rejected,
            len(result.failures),
        )
        return result

    def ingest_live(self, message: RawMessage) -> IngestResult:
        """Handle one SMS delivered by the broadcast listener."""
        return self.ingest([message])

    def capture(self, source: LocalSmsSource, message: RawMessage) -> bool:
        """Queue a message on ``source`` the way the background receiver does."""
        with ingest_lock():
            return source.capture(message)

    def drain_pending(self, source: SmsSource) -> IngestResult:
        """Ingest the background capture queue, clearing it only on success."""
        with ingest_lock():
            messages = source.pending_messages()
            if not messages:
                return IngestResult()
            result = self.ingest(messages)
            if result.failures:
                logger.warning(
                    "[Ingest] Keeping %d pending SMS queued after %d failures",
                    len(messages),
                    len(result.failures),
                )
            else:
                source.clear_pending()
        return result

    def scan_inbox(
        self,
        source: SmsSource,
        days: int = 7,
        max_count: int = 200,
        now: Optional[datetime] = None,
    ) -> ScanResult:
        """Bulk scan of recent inbox messages."""
        status = source.status()
        if not status.supported or not status.permission_granted:
            logger.info("[Ingest] SMS source unavailable: %s", status.message)
            return ScanResult(success=False, error=status.message, status=status)

        now = now or datetime.now(timezone.utc)
        try:
            messages = source.read_messages(max_count, now - timedelta(days=days))
        except SmsSourceUnavailableError as exc:
            logger.info("[Ingest] SMS source unavailable: %s", exc)
            return ScanResult(success=False, error=str(exc), status=exc.status)

        return ScanResult(success=True, status=status, result=self.ingest(messages))

    def process_manual(
        self,
        text: str,
        sender: str = MANUAL_SENDER,
        received_at: Optional[datetime] = None,
    ) -> ManualParseResult:
        """Parse a pasted SMS, returning the parse preview even on rejection."""
        message = RawMessage(
            body=text,
            sender=sender or MANUAL_SENDER,
            received_at=received_at or datetime.now(timezone.utc),
        )
        with ingest_lock():
            ledger = self._load_ledger()
            try:
                outcome = self._process_message(message, ledger)
            finally:
                self.store.save_processed_fingerprints(ledger.snapshot())

        if outcome.status is Outcome.ALREADY_PROCESSED:
            return ManualParseResult(
                success=False,
                error="This message has already been processed",
                already_processed=True,
            )
        if outcome.status is Outcome.CREATED:
            return ManualParseResult(success=True, expense=outcome.expense, parsed=outcome.parsed)
        if outcome.status is Outcome.FAILED:
            return ManualParseResult(success=False, error=outcome.error, parsed=outcome.parsed)
        return ManualParseResult(
            success=False,
            error="Could not extract transaction from message",
            parsed=outcome.parsed,
        )


class PendingQueuePoller:
    """Drains the background capture queue every ``interval`` seconds."""

    def __init__(self, pipeline: SmsIngestionPipeline, source: SmsSource, interval: float = 5.0) -> None:
        self.pipeline = pipeline
        self.source = source
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> Optional[IngestResult]:
        try:
            return self.pipeline.drain_pending(self.source)
        except Exception as exc:
            # Each tick is independent; the next one retries.
            logger.error("[Poller] Pending SMS drain failed: %s", exc)
            return None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="pending-sms-poller", daemon=True)
        self._thread.start()
        logger.info("[Poller] Draining pending SMS every %.1fs", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("[Poller] Stopped")
