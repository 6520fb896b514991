# comments in English; reST docstrings
from __future__ import annotations

import json
from datetime import datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from authcore.services._shared.clock import Clock, SystemClock, from_timestamp, to_timestamp
from authcore.services._shared.ports.marker_store import SingleUseMarker, SingleUseMarkerStore


class RedisMarkerStore(SingleUseMarkerStore):
    """
    Shared single-use marker store.

    ``pop`` is a single ``GETDEL`` round-trip, so two instances racing on the
    same token cannot both observe the marker.

    :param r: A Redis client (already connected).
    :param clock: Time source used to derive key TTLs.
    :param prefix: Key namespace.
    """

    def __init__(self, r: redis.Redis, *, clock: Clock | None = None, prefix: str = "single-use") -> None:
        self.r = r
        self.clock = clock or SystemClock()
        self.prefix = prefix

    def _k(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def put(self, key: str, marker: SingleUseMarker) -> None:
        ttl = max(1, int((marker.expires_at - self.clock.now()).total_seconds()))
        payload = json.dumps(
            {
                "kind": marker.kind,
                "user_id": marker.user_id,
                "email": marker.email,
                "expires_at": to_timestamp(marker.expires_at),
            }
        )
        self.r.set(self._k(key), payload, ex=ttl)

    def pop(self, key: str) -> SingleUseMarker | None:
        raw = cast(bytes | str | None, self.r.getdel(self._k(key)))
        if raw is None:
            return None
        data = json.loads(raw)
        return SingleUseMarker(
            kind=data["kind"],
            user_id=data["user_id"],
            email=data["email"],
            expires_at=from_timestamp(data["expires_at"]),
        )

    def sweep(self, now: datetime) -> int:
        # expiry is enforced by key TTL
        return 0

    def count(self) -> int:
        """Live keys in this namespace (SCAN, so cost grows with the keyspace)."""
        return sum(1 for _ in self.r.scan_iter(match=f"{self.prefix}:*", count=500))
