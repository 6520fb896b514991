# authcore/services/tokens/codec.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import jwt

from authcore.services._shared.clock import from_timestamp, to_timestamp
from authcore.services._shared.digest import new_token_id, token_digest
from authcore.services._shared.errors import (
    EncodingError,
    MalformedTokenError,
    SignatureMismatchError,
    TokenInvalidError,
)
from authcore.services.tokens.dto import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenClaims


_REQUIRED_ON_PARSE = ["sub", "email", "type", "iat", "exp", "iss", "aud"]


def _required(claims: Mapping[str, Any], name: str) -> Any:
    value = claims.get(name)
    if value is None or value == "":
        raise EncodingError(f"Missing required claim '{name}'")
    return value


@dataclass(frozen=True, slots=True)
class TokenCodec:
    """
    Sign and parse compact JWS tokens with PyJWT.

    The codec is pure: no I/O and no notion of "now" beyond the value passed
    to :meth:`sign`. Expiry and revocation are enforced by the verifier.

    :param algorithm: The only algorithm accepted on parse (e.g. ``HS256``).
    :param issuer: Value for the ``iss`` claim; enforced on parse.
    :param audience: Value for the ``aud`` claim; enforced on parse.
    """

    algorithm: str = "HS256"
    issuer: str = "authcore"
    audience: str = "authcore-client"

    # ------------------------------------------------------------------ #
    # Signing
    # ------------------------------------------------------------------ #

    def sign(
        self,
        claims: Mapping[str, Any],
        secret: str,
        ttl: timedelta,
        *,
        now: datetime,
    ) -> str:
        """
        Sign ``claims`` into a compact token.

        :param claims: Must contain ``sub``, ``email`` and ``type``; access tokens
            also ``roles`` and refresh tokens ``jti``. Other tokens get a
            random ``jti`` unless one is given.
        :param secret: Signing key.
        :param ttl: Token lifetime, strictly positive.
        :param now: Issue instant (``iat``).
        :returns: Encoded token.
        :raises EncodingError: When required input is missing or ``ttl <= 0``.
        """
        if not secret:
            raise EncodingError("Signing secret is not configured")
        if ttl <= timedelta(0):
            raise EncodingError(f"Token ttl must be positive, got {ttl}")

        token_type = str(_required(claims, "type"))
        payload: dict[str, Any] = {
            "sub": str(_required(claims, "sub")),
            "email": str(_required(claims, "email")),
            "type": token_type,
            "iat": to_timestamp(now),
            "exp": to_timestamp(now + ttl),
            "iss": self.issuer,
            "aud": self.audience,
        }
        if token_type == ACCESS_TOKEN_TYPE:
            roles = claims.get("roles")
            if roles is None or isinstance(roles, str):
                raise EncodingError("Access tokens require a 'roles' list")
            payload["roles"] = list(roles)
        if token_type == REFRESH_TOKEN_TYPE:
            payload["jti"] = str(_required(claims, "jti"))
        else:
            payload["jti"] = str(claims.get("jti") or new_token_id())

        try:
            return jwt.encode(payload, secret, algorithm=self.algorithm)
        except (NotImplementedError, jwt.PyJWTError, TypeError, ValueError) as exc:
            raise EncodingError(f"Unable to sign token: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    def parse(self, token: str, secret: str) -> TokenClaims:
        """
        Verify signature, algorithm, issuer and audience, then return claims.

        Expiry is deliberately *not* checked here.

        :raises MalformedTokenError: Undecodable token or missing claims.
        :raises SignatureMismatchError: Bad signature or unexpected algorithm.
        :raises TokenInvalidError: Wrong issuer or audience.
        """
        if not token or not isinstance(token, str):
            raise MalformedTokenError("Empty token")
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": _REQUIRED_ON_PARSE,
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise SignatureMismatchError("Signature verification failed") from exc
        except jwt.InvalidAlgorithmError as exc:
            raise SignatureMismatchError("Unexpected signing algorithm") from exc
        except jwt.MissingRequiredClaimError as exc:
            raise MalformedTokenError(str(exc)) from exc
        except jwt.DecodeError as exc:
            raise MalformedTokenError("Token could not be decoded") from exc
        except (jwt.InvalidIssuerError, jwt.InvalidAudienceError) as exc:
            raise TokenInvalidError(str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError(str(exc)) from exc

        try:
            return TokenClaims.from_payload(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedTokenError(f"Unusable claims: {exc}") from exc

    def peek(self, token: str) -> dict[str, Any] | None:
        """
        Decode *without* verifying anything.

        Only for best-effort bookkeeping (blacklisting an expiring token);
        never use the result for an authorization decision.
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return None

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def token_identifier(token: str, claims: TokenClaims | Mapping[str, Any] | None = None) -> str:
        """
        ``jti`` when the token carries one, else the SHA-256 digest of the token.

        Tokens signed here always carry a ``jti``; the digest covers tokens
        minted elsewhere with the same key.
        """
        if isinstance(claims, TokenClaims):
            jti = claims.jti
        elif claims is not None:
            jti = claims.get("jti")
        else:
            jti = None
        return str(jti) if jti else token_digest(token)

    def expires_at(self, token: str) -> datetime | None:
        payload = self.peek(token)
        if not payload or "exp" not in payload:
            return None
        try:
            return from_timestamp(payload["exp"])
        except (TypeError, ValueError, OverflowError):
            return None

    def is_expiring_soon(self, token: str, buffer: timedelta, *, now: datetime) -> bool:
        """``True`` when the token expires within ``buffer`` (or has no usable ``exp``)."""
        exp = self.expires_at(token)
        if exp is None:
            return True
        return exp - now <= buffer
