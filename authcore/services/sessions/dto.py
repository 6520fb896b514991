# authcore/services/sessions/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from authcore.services._shared.ports.refresh_session_store import RefreshSessionRecord


@dataclass(frozen=True, slots=True)
class SessionView:
    """
    Display model of an active refresh session (no token material).

    :param id: Session id.
    :param device: Human label (``Mobile Device``, explicit description, ...).
    :param is_current: ``True`` for the session the caller is using.
    """

    id: str
    device: str
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime
    device_info: Mapping[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    is_current: bool = False

    @classmethod
    def from_record(cls, record: RefreshSessionRecord, *, current_id: str | None = None) -> SessionView:
        return cls(
            id=record.id,
            device=record.device_description(),
            created_at=record.created_at,
            last_used_at=record.last_used_at,
            expires_at=record.expires_at,
            device_info=dict(record.device_info or {}),
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            is_current=current_id is not None and record.id == current_id,
        )
