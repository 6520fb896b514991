from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SingleUseMarker:
    """
    Server-side proof that a single-use token was issued and not yet consumed.

    :ivar kind: ``email_verification`` or ``password_reset``.
    :ivar user_id: Subject the token was issued to.
    :ivar email: Email address the token was issued for.
    :ivar expires_at: Marker expiry (mirrors the token's ``exp``).
    """

    kind: str
    user_id: str
    email: str
    expires_at: datetime


class SingleUseMarkerStore(Protocol):
    """
    Store of unconsumed single-use markers keyed by token digest.

    ``pop`` MUST be an atomic fetch-and-delete: when two callers race on the
    same key, exactly one receives the marker.
    """

    def put(self, key: str, marker: SingleUseMarker) -> None: ...
    def pop(self, key: str) -> SingleUseMarker | None: ...
    def sweep(self, now: datetime) -> int: ...
    def count(self) -> int: ...


class InMemoryMarkerStore(SingleUseMarkerStore):
    """Process-local marker store guarded by a lock."""

    def __init__(self) -> None:
        self._markers: dict[str, SingleUseMarker] = {}
        self._lock = threading.Lock()

    def put(self, key: str, marker: SingleUseMarker) -> None:
        with self._lock:
            self._markers[key] = marker

    def pop(self, key: str) -> SingleUseMarker | None:
        with self._lock:
            return self._markers.pop(key, None)

    def sweep(self, now: datetime) -> int:
        with self._lock:
            stale = [k for k, m in self._markers.items() if m.expires_at <= now]
            for k in stale:
                del self._markers[k]
            return len(stale)

    def count(self) -> int:
        with self._lock:
            return len(self._markers)

    def __len__(self) -> int:
        return self.count()
