from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RevocationEntry:
    """
    A blacklisted token identifier.

    :ivar identifier: ``jti`` or SHA-256 digest of the encoded token.
    :ivar expires_at: Token expiry plus the safety buffer; the entry is
        meaningless afterwards and may be purged.
    :ivar reason: Why the token was revoked (``logout``, ...).
    """

    identifier: str
    expires_at: datetime
    reason: str


class RevocationStore(Protocol):
    """
    Abstraction for the blacklist backing store.

    Implementations must be safe to call from concurrent requests.
    ``sweep`` must be idempotent.
    """

    def get(self, identifier: str) -> RevocationEntry | None: ...
    def set(self, entry: RevocationEntry) -> None: ...
    def delete(self, identifier: str) -> bool: ...
    def sweep(self, now: datetime) -> int: ...
    def count(self) -> int: ...


class InMemoryRevocationStore(RevocationStore):
    """Process-local revocation store (single instance deployments and tests)."""

    def __init__(self) -> None:
        self._entries: dict[str, RevocationEntry] = {}
        self._lock = threading.Lock()

    def get(self, identifier: str) -> RevocationEntry | None:
        with self._lock:
            return self._entries.get(identifier)

    def set(self, entry: RevocationEntry) -> None:
        with self._lock:
            current = self._entries.get(entry.identifier)
            # keep the longest-lived entry when the same token is revoked twice
            if current is None or current.expires_at < entry.expires_at:
                self._entries[entry.identifier] = entry

    def delete(self, identifier: str) -> bool:
        with self._lock:
            return self._entries.pop(identifier, None) is not None

    def sweep(self, now: datetime) -> int:
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.expires_at < now]
            for k in stale:
                del self._entries[k]
            return len(stale)

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.count()
