from __future__ import annotations

import hashlib
import secrets


def token_digest(token: str) -> str:
    """SHA-256 hex digest of an encoded token, used wherever a token is keyed."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def new_session_id() -> str:
    """Random 128-bit identifier used as refresh ``jti`` and session id."""
    return secrets.token_hex(16)


def new_token_id() -> str:
    """Random 128-bit ``jti`` for access and single-use tokens."""
    return secrets.token_hex(16)
