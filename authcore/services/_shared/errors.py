"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between the token
services, the stores, and the delivery layer.

The translation to HTTP responses (RFC 7807) is handled by
``authcore/core/errors.py``.

Token errors are *tagged*: callers branch on the exception class or on
:attr:`TokenError.kind`, never on the message text. The message (``detail``)
is meant for logs only; clients always receive :attr:`TokenError.public_message`.
"""

from __future__ import annotations

from enum import Enum

GENERIC_TOKEN_MESSAGE = "Invalid or expired token"
GENERIC_REFRESH_MESSAGE = "Invalid or expired refresh token"


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to problem responses.
    """

    pass


class TokenErrorKind(str, Enum):
    """Stable tag identifying which token check failed."""

    EXPIRED = "expired"
    INVALID = "invalid"
    TYPE_MISMATCH = "type_mismatch"
    BLACKLISTED = "blacklisted"
    NOT_FOUND = "not_found"
    ENCODING = "encoding"


class TokenError(ServiceError):
    """
    Base class for token verification, rotation and issuance failures.

    :param detail: Diagnostic message for logs (never shown to clients).
    :type detail: str
    """

    kind: TokenErrorKind = TokenErrorKind.INVALID
    public_message: str = GENERIC_TOKEN_MESSAGE

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.kind.value)
        self.detail = detail or self.kind.value


# --------------------------------------------------------------------------- #
# Specific token errors
# --------------------------------------------------------------------------- #


class TokenExpiredError(TokenError):
    """The token's ``exp`` lies in the past (per the injected clock)."""

    kind = TokenErrorKind.EXPIRED


class TokenInvalidError(TokenError):
    """Bad signature or format, wrong issuer/audience, or an already-used token."""

    kind = TokenErrorKind.INVALID


class MalformedTokenError(TokenInvalidError):
    """The token cannot be decoded or lacks required claims."""


class SignatureMismatchError(TokenInvalidError):
    """The signature does not verify or an unexpected algorithm was used."""


class TokenTypeMismatchError(TokenError):
    """The ``type`` claim differs from the type the caller expects."""

    kind = TokenErrorKind.TYPE_MISMATCH


class TokenBlacklistedError(TokenError):
    """The token was revoked before its natural expiry."""

    kind = TokenErrorKind.BLACKLISTED


class TokenNotFoundError(TokenError):
    """The refresh session or single-use marker does not exist (anymore)."""

    kind = TokenErrorKind.NOT_FOUND


class EncodingError(TokenError):
    """Sign-time input is malformed (missing claims, bad ttl, unknown kind).

    This is a programming/configuration error rather than a client error;
    the HTTP layer maps it to a 500.
    """

    kind = TokenErrorKind.ENCODING


__all__ = [
    "GENERIC_REFRESH_MESSAGE",
    "GENERIC_TOKEN_MESSAGE",
    "EncodingError",
    "MalformedTokenError",
    "ServiceError",
    "SignatureMismatchError",
    "TokenBlacklistedError",
    "TokenError",
    "TokenErrorKind",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenNotFoundError",
    "TokenTypeMismatchError",
]
