"""Refresh session model: one row per issued refresh token."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from authcore.core.extensions import db

from .base import ReprMixin, UTCDateTime


class RefreshSession(ReprMixin, db.Model):
    """
    Server-side record of a refresh token issued to a user/device.

    The raw token is never stored; ``token_hash`` holds its SHA-256 digest so
    a leaked table cannot be replayed against the refresh endpoint.

    Fields
    ------
    id : str
        The refresh token's ``jti`` (random 128-bit hex).
    user_id : str
        Owner identifier (the token ``sub``).
    token_hash : str
        SHA-256 hex digest of the encoded refresh token.
    device_info : dict
        Opaque client-provided device description.
    ip_address / user_agent : str | None
        Request context captured at issuance.
    created_at / expires_at / last_used_at : datetime
        Lifecycle timestamps (UTC).
    is_active : bool
        ``False`` once the session reached a terminal state.
    revoked_at / revoked_reason : datetime | None, str | None
        Set together with ``is_active = False``. A reason of ``rotation``
        marks the ROTATED state.
    """

    __tablename__ = "refresh_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    device_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    last_used_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_refresh_sessions_token_hash"),
        Index("ix_refresh_sessions_user_id", "user_id"),
        Index("ix_refresh_sessions_expires_at", "expires_at"),
        Index("ix_refresh_sessions_user_active", "user_id", "is_active"),
    )
