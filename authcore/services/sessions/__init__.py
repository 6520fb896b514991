"""Refresh-session lifecycle (issuance, rotation, revocation)."""

from __future__ import annotations

from authcore.services.sessions.dto import SessionView
from authcore.services.sessions.manager import SessionManager

__all__ = ["SessionManager", "SessionView"]
