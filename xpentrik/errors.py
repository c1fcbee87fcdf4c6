"""Exceptions raised by the storage and SMS source collaborators."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import SmsSourceStatus


class XpentrikError(Exception):
    """Base class for predictable failures."""


class StorageError(XpentrikError):
    """Raised when the expense store cannot be read or written."""


class SmsSourceUnavailableError(XpentrikError):
    """Raised when the device SMS source is unsupported or not permitted."""

    def __init__(self, status: "SmsSourceStatus", message: Optional[str] = None) -> None:
        super().__init__(message or status.message)
        self.status = status
