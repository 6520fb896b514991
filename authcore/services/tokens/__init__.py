"""Token signing, parsing and verification."""

from __future__ import annotations

from authcore.services.tokens.codec import TokenCodec
from authcore.services.tokens.dto import (
    ACCESS_TOKEN_TYPE,
    EMAIL_VERIFICATION_TYPE,
    PASSWORD_RESET_TYPE,
    REFRESH_TOKEN_TYPE,
    SessionMetadata,
    TokenClaims,
    TokenConfig,
    TokenPair,
    TokenSubject,
)
from authcore.services.tokens.verifier import TokenVerifier

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "EMAIL_VERIFICATION_TYPE",
    "PASSWORD_RESET_TYPE",
    "REFRESH_TOKEN_TYPE",
    "SessionMetadata",
    "TokenClaims",
    "TokenCodec",
    "TokenConfig",
    "TokenPair",
    "TokenSubject",
    "TokenVerifier",
]
