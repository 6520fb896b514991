from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Protocol

from authcore.services._shared.digest import token_digest

ROTATION_REASON = "rotation"

# Retention window for the hard-delete sweep
EXPIRED_RETENTION = timedelta(days=1)
REVOKED_RETENTION = timedelta(days=7)


class SessionState(Enum):
    """Lifecycle of a refresh session. Every state but ACTIVE is terminal."""

    ACTIVE = "active"
    ROTATED = "rotated"
    REVOKED = "revoked"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class RefreshSessionRecord:
    """
    Read-model for a refresh session.

    :ivar id: Session identifier (the refresh token ``jti``).
    :ivar user_id: Owner user id.
    :ivar token_hash: SHA-256 digest of the encoded refresh token.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar is_active: ``False`` once rotated, revoked or bulk-revoked.
    :ivar revoked_at: When the session left the ACTIVE state.
    :ivar revoked_reason: ``rotation`` for rotated sessions, free text otherwise.
    """

    id: str
    user_id: str
    token_hash: str
    created_at: datetime
    expires_at: datetime
    last_used_at: datetime
    device_info: Mapping[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    is_active: bool = True
    revoked_at: datetime | None = None
    revoked_reason: str | None = None

    def is_valid(self, now: datetime) -> bool:
        """``is_active and revoked_at is None and now < expires_at``."""
        return self.is_active and self.revoked_at is None and now < self.expires_at

    def state(self, now: datetime) -> SessionState:
        if not self.is_active or self.revoked_at is not None:
            if self.revoked_reason == ROTATION_REASON:
                return SessionState.ROTATED
            return SessionState.REVOKED
        if now >= self.expires_at:
            return SessionState.EXPIRED
        return SessionState.ACTIVE

    def device_description(self) -> str:
        """Human label for the session list (explicit description, else UA sniffing)."""
        described = self.device_info.get("description") if self.device_info else None
        if described:
            return str(described)
        if self.user_agent:
            ua = self.user_agent.lower()
            if any(marker in ua for marker in ("mobile", "android", "iphone")):
                return "Mobile Device"
            if any(marker in ua for marker in ("tablet", "ipad")):
                return "Tablet Device"
            return "Desktop Device"
        return "Unknown Device"


class RefreshSessionStore(Protocol):
    """
    Persistent store for refresh sessions.

    ``revoke`` MUST have compare-and-swap semantics: it only transitions a
    session that is still active, and reports whether *this* call performed
    the transition. Rotation relies on that single conditional write to
    guarantee a refresh token is consumed at most once, across processes.
    """

    def create(self, record: RefreshSessionRecord) -> str:
        """Persist a brand-new ACTIVE session. :returns: its id."""

    def get(self, session_id: str) -> RefreshSessionRecord | None:
        """Fetch a single session snapshot (if present)."""

    def find_by_token(self, token: str) -> RefreshSessionRecord | None:
        """Look a session up by its encoded refresh token."""

    def find_active_by_user(self, user_id: str, *, now: datetime) -> list[RefreshSessionRecord]:
        """Valid sessions for a user, most recently used first."""

    def revoke(self, session_id: str, reason: str, *, now: datetime) -> bool:
        """Conditionally revoke. :returns: ``False`` if already inactive or missing."""

    def revoke_all_for_user(self, user_id: str, reason: str, *, now: datetime) -> int:
        """Revoke every still-active session. :returns: number transitioned."""

    def touch_last_used(self, session_id: str, *, now: datetime) -> None:
        """Best-effort bump of ``last_used_at``."""

    def count_active(self, user_id: str | None, *, now: datetime) -> int:
        """Number of valid sessions for a user, or across all users when ``None``."""

    def purge_stale(self, *, now: datetime) -> int:
        """Hard-delete rows long past expiry or revocation. :returns: count."""


class InMemoryRefreshSessionStore(RefreshSessionStore):
    """
    In-memory refresh session store with compare-and-swap revocation.

    .. note::
       A single lock makes every check-then-write atomic within the process.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, RefreshSessionRecord] = {}
        self._by_hash: dict[str, str] = {}
        self._lock = threading.Lock()

    def create(self, record: RefreshSessionRecord) -> str:
        with self._lock:
            if record.id in self._by_id or record.token_hash in self._by_hash:
                raise ValueError(f"Duplicate refresh session {record.id!r}")
            self._by_id[record.id] = record
            self._by_hash[record.token_hash] = record.id
            return record.id

    def get(self, session_id: str) -> RefreshSessionRecord | None:
        with self._lock:
            return self._by_id.get(session_id)

    def find_by_token(self, token: str) -> RefreshSessionRecord | None:
        with self._lock:
            session_id = self._by_hash.get(token_digest(token))
            return self._by_id.get(session_id) if session_id else None

    def find_active_by_user(self, user_id: str, *, now: datetime) -> list[RefreshSessionRecord]:
        with self._lock:
            rows = [r for r in self._by_id.values() if r.user_id == user_id and r.is_valid(now)]
        return sorted(rows, key=lambda r: r.last_used_at, reverse=True)

    def revoke(self, session_id: str, reason: str, *, now: datetime) -> bool:
        with self._lock:
            current = self._by_id.get(session_id)
            if current is None or not current.is_active or current.revoked_at is not None:
                return False
            self._by_id[session_id] = replace(
                current, is_active=False, revoked_at=now, revoked_reason=reason
            )
            return True

    def revoke_all_for_user(self, user_id: str, reason: str, *, now: datetime) -> int:
        with self._lock:
            targets = [
                r for r in self._by_id.values()
                if r.user_id == user_id and r.is_active and r.revoked_at is None
            ]
            for r in targets:
                self._by_id[r.id] = replace(
                    r, is_active=False, revoked_at=now, revoked_reason=reason
                )
            return len(targets)

    def touch_last_used(self, session_id: str, *, now: datetime) -> None:
        with self._lock:
            current = self._by_id.get(session_id)
            if current is not None:
                self._by_id[session_id] = replace(current, last_used_at=now)

    def count_active(self, user_id: str | None, *, now: datetime) -> int:
        with self._lock:
            return sum(
                1 for r in self._by_id.values()
                if (user_id is None or r.user_id == user_id) and r.is_valid(now)
            )

    def purge_stale(self, *, now: datetime) -> int:
        with self._lock:
            stale = [
                r.id for r in self._by_id.values()
                if r.expires_at < now - EXPIRED_RETENTION
                or (
                    not r.is_active
                    and r.revoked_at is not None
                    and r.revoked_at < now - REVOKED_RETENTION
                )
            ]
            for session_id in stale:
                record = self._by_id.pop(session_id)
                self._by_hash.pop(record.token_hash, None)
            return len(stale)
