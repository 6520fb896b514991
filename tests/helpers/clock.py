"""Deterministic clock for time-dependent tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


class FakeClock:
    """Clock that only moves when told to.

    Parameters
    ----------
    start: datetime
        Initial instant (timezone-aware UTC).
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move forward by ``delta`` (or ``timedelta(**kwargs)``) and return the new now."""
        self._now += delta if delta is not None else timedelta(**kwargs)
        return self._now
