# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from datetime import datetime

from flask import Flask, has_app_context

from authcore.models.refresh_session import RefreshSession
from authcore.services._shared.digest import token_digest
from authcore.services._shared.ports.refresh_session_store import (
    EXPIRED_RETENTION,
    REVOKED_RETENTION,
    RefreshSessionRecord,
    RefreshSessionStore,
)
from authcore.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _to_record(row: RefreshSession) -> RefreshSessionRecord:
    return RefreshSessionRecord(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        created_at=row.created_at,
        expires_at=row.expires_at,
        last_used_at=row.last_used_at,
        device_info=dict(row.device_info or {}),
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        is_active=bool(row.is_active),
        revoked_at=row.revoked_at,
        revoked_reason=row.revoked_reason,
    )


class SQLAlchemyRefreshSessionStore(RefreshSessionStore):
    """
    Relational refresh session store.

    Each operation runs in its own Unit of Work. Revocation is a single
    conditional ``UPDATE`` whose row count decides the winner, which keeps
    rotation linearizable across processes sharing the database.

    .. note::
       Uses the Flask-SQLAlchemy session, so it needs an app context. When
       ``app`` is given, one is pushed for calls made outside of it (the
       maintenance thread).
    """

    def __init__(
        self,
        *,
        app: Flask | None = None,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._app = app
        self._rw_uow = rw_uow
        self._ro_uow = ro_uow

    def create(self, record: RefreshSessionRecord) -> str:
        with self._app_scope(), self._rw_uow() as uow:
            uow.refresh_sessions.add(
                RefreshSession(
                    id=record.id,
                    user_id=record.user_id,
                    token_hash=record.token_hash,
                    device_info=dict(record.device_info or {}),
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                    last_used_at=record.last_used_at,
                    is_active=record.is_active,
                    revoked_at=record.revoked_at,
                    revoked_reason=record.revoked_reason,
                )
            )
        return record.id

    def get(self, session_id: str) -> RefreshSessionRecord | None:
        with self._app_scope(), self._ro_uow() as uow:
            row = uow.refresh_sessions.get(session_id)
            return _to_record(row) if row is not None else None

    def find_by_token(self, token: str) -> RefreshSessionRecord | None:
        with self._app_scope(), self._ro_uow() as uow:
            row = uow.refresh_sessions.get_by_token_hash(token_digest(token))
            return _to_record(row) if row is not None else None

    def find_active_by_user(self, user_id: str, *, now: datetime) -> list[RefreshSessionRecord]:
        with self._app_scope(), self._ro_uow() as uow:
            return [_to_record(r) for r in uow.refresh_sessions.list_valid_for_user(user_id, now=now)]

    def revoke(self, session_id: str, reason: str, *, now: datetime) -> bool:
        with self._app_scope(), self._rw_uow() as uow:
            return uow.refresh_sessions.revoke_if_active(session_id, reason, now=now)

    def revoke_all_for_user(self, user_id: str, reason: str, *, now: datetime) -> int:
        with self._app_scope(), self._rw_uow() as uow:
            return uow.refresh_sessions.revoke_all_active_for_user(user_id, reason, now=now)

    def touch_last_used(self, session_id: str, *, now: datetime) -> None:
        with self._app_scope(), self._rw_uow() as uow:
            uow.refresh_sessions.touch(session_id, now=now)

    def count_active(self, user_id: str | None, *, now: datetime) -> int:
        with self._app_scope(), self._ro_uow() as uow:
            return uow.refresh_sessions.count_valid_for_user(user_id, now=now)

    def purge_stale(self, *, now: datetime) -> int:
        with self._app_scope(), self._rw_uow() as uow:
            return uow.refresh_sessions.delete_stale(
                expired_before=now - EXPIRED_RETENTION,
                revoked_before=now - REVOKED_RETENTION,
            )

    def _app_scope(self) -> AbstractContextManager[object]:
        if self._app is None or has_app_context():
            return nullcontext()
        return self._app.app_context()
