# authcore/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from authcore.services._shared.clock import from_timestamp

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
EMAIL_VERIFICATION_TYPE = "email_verification"
PASSWORD_RESET_TYPE = "password_reset"

SPECIAL_TOKEN_TYPES = frozenset({EMAIL_VERIFICATION_TYPE, PASSWORD_RESET_TYPE})

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenSubject:
    """
    The authenticated principal tokens are issued for.

    :param id: User id (becomes the ``sub`` claim).
    :type id: str
    :param email: User email.
    :type email: str
    :param roles: Role names embedded in access tokens.
    :type roles: tuple[str, ...]
    """

    id: str
    email: str
    roles: tuple[str, ...] = ("user",)


@dataclass(frozen=True, slots=True)
class SessionMetadata:
    """
    Client context recorded alongside a refresh session.

    :param device_info: Opaque map supplied by the client.
    :param ip_address: Remote address, if known.
    :param user_agent: Raw ``User-Agent`` header, if known.
    """

    device_info: Mapping[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified (or freshly signed) token claims.

    ``iat`` and ``exp`` are POSIX seconds, exactly as carried by the token.
    """

    sub: str
    email: str
    type: str
    iat: int
    exp: int
    iss: str
    aud: str
    roles: tuple[str, ...] = ()
    jti: str | None = None

    @property
    def issued_at(self) -> datetime:
        return from_timestamp(self.iat)

    @property
    def expires_at(self) -> datetime:
        return from_timestamp(self.exp)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TokenClaims:
        """Build claims from a decoded JWT payload (``KeyError`` if incomplete)."""
        aud = payload["aud"]
        if isinstance(aud, list | tuple):
            aud = aud[0] if aud else ""
        return cls(
            sub=str(payload["sub"]),
            email=str(payload["email"]),
            type=str(payload["type"]),
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
            iss=str(payload["iss"]),
            aud=str(aud),
            roles=tuple(payload.get("roles") or ()),
            jti=payload.get("jti"),
        )


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access token lifetime in seconds.
    :param token_type: Always ``Bearer``.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Token emission and verification settings.

    :param access_secret: Key for access and single-use tokens.
    :param refresh_secret: Key for refresh tokens.
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime (and session lifetime).
    :param leeway: Clock skew tolerated when checking ``exp``.
    """

    access_secret: str
    refresh_secret: str
    access_expires: timedelta = timedelta(hours=1)
    refresh_expires: timedelta = timedelta(days=7)
    leeway: timedelta = timedelta(0)

    def secret_for(self, token_type: str) -> str:
        return self.refresh_secret if token_type == REFRESH_TOKEN_TYPE else self.access_secret
