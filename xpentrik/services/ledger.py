"""Deduplication ledger of already-handled SMS fingerprints.

A fingerprint is recorded whether the message became an expense or was
rejected by the parser, so known non-transactional SMS (OTPs, promos) are
not re-parsed on every poll. The ledger keeps the most recent ``capacity``
fingerprints and evicts the oldest first.
"""
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, List, Union

DEFAULT_CAPACITY = 1000
FINGERPRINT_BODY_CHARS = 50

_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_MASK_64 = (1 << 64) - 1
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _fnv1a_64(data: bytes) -> int:
    value = _FNV_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & _MASK_64
    return value


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def fingerprint(body: str, received_at: Union[str, datetime]) -> str:
    """Stable dedup key over the first 50 body chars and the ISO timestamp."""
    if isinstance(received_at, datetime):
        received_at = received_at.isoformat()
    key = f"{(body or '')[:FINGERPRINT_BODY_CHARS]}_{received_at}"
    return _base36(_fnv1a_64(key.encode("utf-8")))


class ProcessedLedger:
    """Bounded, insertion-ordered set of processed fingerprints."""

    def __init__(self, entries: Iterable[str] = (), capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: "OrderedDict[str, None]" = OrderedDict()
        for fp in entries:
            self.mark_processed(fp)

    def is_processed(self, fp: str) -> bool:
        return fp in self._entries

    def mark_processed(self, fp: str) -> None:
        if fp in self._entries:
            return
        self._entries[fp] = None
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def snapshot(self) -> List[str]:
        """Fingerprints oldest first, ready to be persisted."""
        return list(self._entries)

    def __contains__(self, fp: object) -> bool:
        return fp in self._entries

    def __len__(self) -> int:
        return len(self._entries)
