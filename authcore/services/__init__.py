"""Service layer public API.

This package exposes the token lifecycle services so that callers can import
from :mod:`authcore.services` without knowing internal structure.

Re-exports
----------
- Container (from ``authcore.services.container``)
    * :class:`AuthServices`, :func:`build_services`

- Token services (from ``authcore.services.tokens``)
    * :class:`TokenCodec`, :class:`TokenVerifier`
    * DTOs: :class:`TokenClaims`, :class:`TokenConfig`, :class:`TokenPair`,
      :class:`TokenSubject`, :class:`SessionMetadata`

- Sessions, revocation and single-use tokens
    * :class:`SessionManager`, :class:`SessionView`
    * :class:`RevocationRegistry`
    * :class:`SpecialTokenService`
    * :class:`MaintenanceSweeper`
"""

from __future__ import annotations

from authcore.services.container import AuthServices, build_services
from authcore.services.maintenance import MaintenanceSweeper
from authcore.services.revocation.registry import RevocationRegistry
from authcore.services.sessions.dto import SessionView
from authcore.services.sessions.manager import SessionManager
from authcore.services.special_tokens.service import SpecialTokenService
from authcore.services.tokens.codec import TokenCodec
from authcore.services.tokens.dto import (
    SessionMetadata,
    TokenClaims,
    TokenConfig,
    TokenPair,
    TokenSubject,
)
from authcore.services.tokens.verifier import TokenVerifier

__all__ = [
    "AuthServices",
    "MaintenanceSweeper",
    "RevocationRegistry",
    "SessionManager",
    "SessionMetadata",
    "SessionView",
    "SpecialTokenService",
    "TokenClaims",
    "TokenCodec",
    "TokenConfig",
    "TokenPair",
    "TokenSubject",
    "TokenVerifier",
    "build_services",
]
