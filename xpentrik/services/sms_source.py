"""Device SMS source collaborators.

The real inbox reader and broadcast receiver live on the phone. On the host
the backend either has no SMS access at all (``UnsupportedSmsSource``) or a
local stand-in fed through the API (``LocalSmsSource``).
"""
from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from ..db import SQLiteExpenseStore
from ..errors import SmsSourceUnavailableError
from ..logging_config import get_logger
from ..models import RawMessage, SmsSourceStatus
from .sms_parser import is_transaction_candidate

logger = get_logger(__name__)


class SmsSource(Protocol):
    def status(self) -> SmsSourceStatus:
        ...

    def read_messages(self, max_count: int, min_date: Optional[datetime]) -> List[RawMessage]:
        ...

    def pending_messages(self) -> List[RawMessage]:
        ...

    def clear_pending(self) -> None:
        ...


class UnsupportedSmsSource:
    """No SMS access on this platform; only manual paste works."""

    def __init__(self, platform: str = "server") -> None:
        self.platform = platform

    def status(self) -> SmsSourceStatus:
        return SmsSourceStatus(
            platform=self.platform,
            supported=False,
            permission_granted=False,
            message="SMS auto-read is only available on Android. Paste messages manually instead.",
        )

    def read_messages(self, max_count: int, min_date: Optional[datetime]) -> List[RawMessage]:
        raise SmsSourceUnavailableError(self.status())

    def pending_messages(self) -> List[RawMessage]:
        return []

    def clear_pending(self) -> None:
        return None


class LocalSmsSource:
    """Host-side source: an in-memory inbox plus the store-backed capture queue."""

    def __init__(
        self,
        store: SQLiteExpenseStore,
        inbox: Iterable[RawMessage] = (),
        *,
        permission_granted: bool = True,
        pending_cap: int = 50,
        platform: str = "android",
    ) -> None:
        self.store = store
        self.inbox: List[RawMessage] = list(inbox)
        self.permission_granted = permission_granted
        self.pending_cap = pending_cap
        self.platform = platform

    def status(self) -> SmsSourceStatus:
        if not self.permission_granted:
            message = "Tap to enable SMS permission for automatic tracking."
        else:
            message = "SMS auto-read enabled! Expenses are tracked automatically."
        return SmsSourceStatus(
            platform=self.platform,
            supported=True,
            permission_granted=self.permission_granted,
            message=message,
        )

    def add_to_inbox(self, message: RawMessage) -> None:
        self.inbox.append(message)

    def read_messages(self, max_count: int, min_date: Optional[datetime]) -> List[RawMessage]:
        """Newest-first messages received on or after ``min_date``."""
        if not self.permission_granted:
            raise SmsSourceUnavailableError(self.status(), "SMS permission denied")
        messages = sorted(self.inbox, key=lambda m: m.received_at.timestamp(), reverse=True)
        if min_date is not None:
            messages = [m for m in messages if m.received_at.timestamp() >= min_date.timestamp()]
        return messages[:max_count]

    def capture(self, message: RawMessage) -> bool:
        """Background receiver: queue ``message`` if it looks like a transaction."""
        if not is_transaction_candidate(message.sender, message.body):
            return False
        total = self.store.push_pending(message, cap=self.pending_cap)
        logger.debug("[Receiver] SMS from %s queued, total pending: %d", message.sender, total)
        return True

    def pending_messages(self) -> List[RawMessage]:
        return self.store.load_pending()

    def clear_pending(self) -> None:
        self.store.clear_pending()
