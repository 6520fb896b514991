from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time. Must return timezone-aware UTC datetimes."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock used outside of tests."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def to_timestamp(dt: datetime) -> int:
    """Return whole POSIX seconds for an aware datetime (JWT NumericDate)."""
    return int(dt.timestamp())


def from_timestamp(ts: int | float) -> datetime:
    """Return the aware UTC datetime for POSIX seconds."""
    return datetime.fromtimestamp(int(ts), tz=UTC)
