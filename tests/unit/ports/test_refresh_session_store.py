# tests/unit/ports/test_refresh_session_store.py
from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from authcore.services._shared.digest import token_digest
from authcore.services._shared.ports import (
    InMemoryRefreshSessionStore,
    RefreshSessionRecord,
    SessionState,
)
from tests.factories.refresh_session import BASE_TIME


def _record(session_id: str, *, user_id: str = "u-1", **overrides) -> RefreshSessionRecord:
    record = RefreshSessionRecord(
        id=session_id,
        user_id=user_id,
        token_hash=token_digest(f"token-{session_id}"),
        created_at=BASE_TIME,
        expires_at=BASE_TIME + timedelta(days=7),
        last_used_at=BASE_TIME,
    )
    return replace(record, **overrides)


# ------------------------------ Record model ------------------------------- #
def test_state_transitions():
    active = _record("s-1")
    later = BASE_TIME + timedelta(days=1)

    assert active.state(later) is SessionState.ACTIVE
    assert active.is_valid(later)
    assert active.state(BASE_TIME + timedelta(days=7)) is SessionState.EXPIRED
    assert replace(active, is_active=False, revoked_at=later, revoked_reason="rotation").state(later) is (
        SessionState.ROTATED
    )
    assert replace(active, is_active=False, revoked_at=later, revoked_reason="logout").state(later) is (
        SessionState.REVOKED
    )


@pytest.mark.parametrize(
    "device_info, user_agent, expected",
    [
        ({"description": "Kitchen tablet"}, "Mozilla/5.0 (iPad)", "Kitchen tablet"),
        ({}, "Mozilla/5.0 (Linux; Android 14) Mobile", "Mobile Device"),
        ({}, "Mozilla/5.0 (iPad; CPU OS 17_0)", "Tablet Device"),
        ({}, "Mozilla/5.0 (Windows NT 10.0; Win64; x64)", "Desktop Device"),
        ({}, None, "Unknown Device"),
    ],
)
def test_device_description(device_info, user_agent, expected):
    record = _record("s-1", device_info=device_info, user_agent=user_agent)
    assert record.device_description() == expected


# ------------------------------ In-memory store ---------------------------- #
def test_duplicates_are_rejected():
    store = InMemoryRefreshSessionStore()
    store.create(_record("s-1"))

    with pytest.raises(ValueError):
        store.create(_record("s-1"))
    with pytest.raises(ValueError):
        store.create(_record("s-2", token_hash=token_digest("token-s-1")))


def test_revoke_is_compare_and_swap():
    store = InMemoryRefreshSessionStore()
    store.create(_record("s-1"))

    assert store.revoke("s-1", "rotation", now=BASE_TIME) is True
    assert store.revoke("s-1", "logout", now=BASE_TIME) is False
    assert store.revoke("missing", "logout", now=BASE_TIME) is False
    assert store.get("s-1").revoked_reason == "rotation"


def test_find_by_token_and_active_listing():
    store = InMemoryRefreshSessionStore()
    store.create(_record("s-1"))
    store.create(_record("s-2", last_used_at=BASE_TIME + timedelta(minutes=5)))
    store.create(_record("s-3", user_id="u-2"))
    now = BASE_TIME + timedelta(hours=1)

    assert store.find_by_token("token-s-2").id == "s-2"
    assert store.find_by_token("token-unknown") is None
    assert [r.id for r in store.find_active_by_user("u-1", now=now)] == ["s-2", "s-1"]

    store.touch_last_used("s-1", now=now)
    assert [r.id for r in store.find_active_by_user("u-1", now=now)] == ["s-1", "s-2"]
    assert store.revoke_all_for_user("u-1", "logout_all", now=now) == 2
    assert store.count_active("u-1", now=now) == 0
    assert store.count_active("u-2", now=now) == 1


def test_purge_stale_forgets_token_lookup():
    store = InMemoryRefreshSessionStore()
    store.create(_record("s-1", expires_at=BASE_TIME + timedelta(hours=1)))

    assert store.purge_stale(now=BASE_TIME + timedelta(days=1)) == 0
    assert store.purge_stale(now=BASE_TIME + timedelta(days=1, hours=2)) == 1
    assert store.find_by_token("token-s-1") is None
