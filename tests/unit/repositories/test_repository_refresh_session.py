"""Unit tests for RefreshSessionRepository."""

from datetime import timedelta

import pytest

from authcore.repositories.refresh_session import RefreshSessionRepository
from tests.factories.refresh_session import BASE_TIME, RefreshSessionFactory


class TestRefreshSessionRepository:
    """Ensure ``RefreshSessionRepository`` queries and conditional updates behave."""

    @pytest.fixture()
    def repo(self):
        return RefreshSessionRepository()

    def test_get_by_token_hash(self, repo, session):
        """Look a row up by the digest of its token."""
        row = RefreshSessionFactory()
        session.commit()

        fetched = repo.get_by_token_hash(row.token_hash)
        assert fetched is not None
        assert fetched.id == row.id
        assert repo.get_by_token_hash("0" * 64) is None

    def test_revoke_if_active_wins_once(self, repo, session):
        """The conditional update only transitions an active row."""
        row = RefreshSessionFactory()
        session.commit()
        now = BASE_TIME + timedelta(minutes=1)

        assert repo.revoke_if_active(row.id, "rotation", now=now) is True
        assert repo.revoke_if_active(row.id, "logout", now=now) is False
        assert repo.revoke_if_active("missing", "logout", now=now) is False

        refreshed = repo.get(row.id)
        assert refreshed.is_active is False
        assert refreshed.revoked_reason == "rotation"
        assert refreshed.revoked_at == now

    def test_list_valid_for_user_orders_by_last_use(self, repo, session):
        """Only valid rows are listed, most recently used first."""
        user_id = "user-list"
        older = RefreshSessionFactory(user_id=user_id)
        newer = RefreshSessionFactory(user_id=user_id, last_used_at=BASE_TIME + timedelta(hours=1))
        RefreshSessionFactory(user_id=user_id, is_active=False, revoked_at=BASE_TIME, revoked_reason="logout")
        RefreshSessionFactory(user_id=user_id, expires_at=BASE_TIME + timedelta(minutes=5))
        RefreshSessionFactory()
        session.commit()

        now = BASE_TIME + timedelta(hours=2)
        rows = repo.list_valid_for_user(user_id, now=now)

        assert [r.id for r in rows] == [newer.id, older.id]
        assert repo.count_valid_for_user(user_id, now=now) == 2

    def test_revoke_all_active_for_user(self, repo, session):
        """Bulk revocation only counts rows that were still active."""
        user_id = "user-bulk"
        for _ in range(3):
            RefreshSessionFactory(user_id=user_id)
        RefreshSessionFactory(user_id=user_id, is_active=False, revoked_at=BASE_TIME, revoked_reason="logout")
        session.commit()

        assert repo.revoke_all_active_for_user(user_id, "logout_all", now=BASE_TIME) == 3
        assert repo.revoke_all_active_for_user(user_id, "logout_all", now=BASE_TIME) == 0

    def test_delete_stale(self, repo, session):
        """Rows long expired or long revoked are hard-deleted."""
        expired = RefreshSessionFactory(expires_at=BASE_TIME - timedelta(days=3))
        revoked = RefreshSessionFactory(
            is_active=False, revoked_at=BASE_TIME - timedelta(days=10), revoked_reason="logout"
        )
        recent = RefreshSessionFactory(
            is_active=False, revoked_at=BASE_TIME - timedelta(days=1), revoked_reason="logout"
        )
        live = RefreshSessionFactory()
        session.commit()
        expired_id, revoked_id = expired.id, revoked.id

        purged = repo.delete_stale(
            expired_before=BASE_TIME - timedelta(days=1),
            revoked_before=BASE_TIME - timedelta(days=7),
        )

        assert purged == 2
        assert repo.get(expired_id) is None
        assert repo.get(revoked_id) is None
        assert repo.get(recent.id) is not None
        assert repo.get(live.id) is not None
