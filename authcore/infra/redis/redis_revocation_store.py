# comments in English; reST docstrings
from __future__ import annotations

import json
from datetime import datetime

import redis  # type: ignore[import-untyped]

from authcore.services._shared.clock import Clock, SystemClock, from_timestamp, to_timestamp
from authcore.services._shared.ports.revocation_store import RevocationEntry, RevocationStore


class RedisRevocationStore(RevocationStore):
    """
    Shared blacklist: one key per revoked identifier.

    Keys carry a native TTL matching the entry's ``expires_at``, so Redis
    purges them on its own and :meth:`sweep` has nothing to do.

    :param r: A Redis client (already connected).
    :param clock: Time source used to derive key TTLs.
    :param prefix: Key namespace.
    """

    def __init__(self, r: redis.Redis, *, clock: Clock | None = None, prefix: str = "revoked") -> None:
        self.r = r
        self.clock = clock or SystemClock()
        self.prefix = prefix

    def _k(self, identifier: str) -> str:
        return f"{self.prefix}:{identifier}"

    def get(self, identifier: str) -> RevocationEntry | None:
        raw = self.r.get(self._k(identifier))
        if raw is None:
            return None
        data = json.loads(raw)
        return RevocationEntry(
            identifier=identifier,
            expires_at=from_timestamp(data["expires_at"]),
            reason=data.get("reason", ""),
        )

    def set(self, entry: RevocationEntry) -> None:
        ttl = self._ttl(entry.expires_at)
        payload = json.dumps({"expires_at": to_timestamp(entry.expires_at), "reason": entry.reason})
        self.r.set(self._k(entry.identifier), payload, ex=ttl)

    def delete(self, identifier: str) -> bool:
        return int(self.r.delete(self._k(identifier))) == 1

    def sweep(self, now: datetime) -> int:
        # expiry is enforced by key TTL
        return 0

    def count(self) -> int:
        """Live keys in this namespace (SCAN, so cost grows with the keyspace)."""
        return sum(1 for _ in self.r.scan_iter(match=f"{self.prefix}:*", count=500))

    def _ttl(self, expires_at: datetime) -> int:
        return max(1, int((expires_at - self.clock.now()).total_seconds()))
