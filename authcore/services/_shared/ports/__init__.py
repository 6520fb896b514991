"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts for
the state the token services depend on.

These ports decouple the service layer from concrete storage, so the same
rotation, revocation and single-use logic runs against the in-memory
adapters (tests, single instance) and the shared adapters (Redis, SQL).

Modules
-------
- :mod:`revocation_store`:
    Defines :class:`~.RevocationStore`: blacklist entries with expiry.

- :mod:`marker_store`:
    Defines :class:`~.SingleUseMarkerStore`: unconsumed single-use markers
    with atomic fetch-and-delete.

- :mod:`refresh_session_store`:
    Defines :class:`~.RefreshSessionStore`, :class:`~.RefreshSessionRecord`
    and :class:`~.SessionState`: persisted refresh sessions with
    compare-and-swap revocation.

Design Notes
------------
Concrete shared adapters live under ``authcore.infra``.
"""

from __future__ import annotations

from .marker_store import InMemoryMarkerStore, SingleUseMarker, SingleUseMarkerStore
from .refresh_session_store import (
    ROTATION_REASON,
    InMemoryRefreshSessionStore,
    RefreshSessionRecord,
    RefreshSessionStore,
    SessionState,
)
from .revocation_store import InMemoryRevocationStore, RevocationEntry, RevocationStore

__all__ = [
    "ROTATION_REASON",
    "InMemoryMarkerStore",
    "InMemoryRefreshSessionStore",
    "InMemoryRevocationStore",
    "RefreshSessionRecord",
    "RefreshSessionStore",
    "RevocationEntry",
    "RevocationStore",
    "SessionState",
    "SingleUseMarker",
    "SingleUseMarkerStore",
]
