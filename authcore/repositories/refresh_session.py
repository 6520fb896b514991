"""Refresh session repository (persistence only)."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, delete, func, or_, select, update

from authcore.models.refresh_session import RefreshSession

from .base import BaseRepository


class RefreshSessionRepository(BaseRepository[RefreshSession]):
    """Queries and conditional updates over ``refresh_sessions``."""

    model = RefreshSession

    @staticmethod
    def _valid_at(now: datetime):
        return and_(
            RefreshSession.is_active.is_(True),
            RefreshSession.revoked_at.is_(None),
            RefreshSession.expires_at > now,
        )

    @staticmethod
    def _still_active():
        return and_(RefreshSession.is_active.is_(True), RefreshSession.revoked_at.is_(None))

    def get_by_token_hash(self, token_hash: str) -> RefreshSession | None:
        stmt = (
            select(RefreshSession)
            .where(RefreshSession.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalars().first()

    def list_valid_for_user(self, user_id: str, *, now: datetime) -> Sequence[RefreshSession]:
        """Valid sessions for ``user_id``, most recently used first."""
        stmt = (
            select(RefreshSession)
            .where(RefreshSession.user_id == user_id, self._valid_at(now))
            .order_by(RefreshSession.last_used_at.desc(), RefreshSession.id.asc())
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalars().all()

    def count_valid_for_user(self, user_id: str | None, *, now: datetime) -> int:
        """Valid sessions for ``user_id``; ``None`` counts every user."""
        stmt = select(func.count()).select_from(RefreshSession).where(self._valid_at(now))
        if user_id is not None:
            stmt = stmt.where(RefreshSession.user_id == user_id)
        return int(self.session.execute(stmt).scalar_one())

    def revoke_if_active(self, session_id: str, reason: str, *, now: datetime) -> bool:
        """
        Conditionally move one session out of the ACTIVE state.

        A single ``UPDATE ... WHERE is_active AND revoked_at IS NULL``; the
        affected row count tells whether this statement won.
        """
        stmt = (
            update(RefreshSession)
            .where(RefreshSession.id == session_id, self._still_active())
            .values(is_active=False, revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def revoke_all_active_for_user(self, user_id: str, reason: str, *, now: datetime) -> int:
        stmt = (
            update(RefreshSession)
            .where(RefreshSession.user_id == user_id, self._still_active())
            .values(is_active=False, revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def touch(self, session_id: str, *, now: datetime) -> None:
        stmt = (
            update(RefreshSession)
            .where(RefreshSession.id == session_id)
            .values(last_used_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.execute(stmt)

    def delete_stale(self, *, expired_before: datetime, revoked_before: datetime) -> int:
        """Hard-delete rows expired before ``expired_before`` or revoked before ``revoked_before``."""
        stmt = (
            delete(RefreshSession)
            .where(
                or_(
                    RefreshSession.expires_at < expired_before,
                    and_(
                        RefreshSession.is_active.is_(False),
                        RefreshSession.revoked_at.is_not(None),
                        RefreshSession.revoked_at < revoked_before,
                    ),
                )
            )
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
