# authcore/services/tokens/verifier.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from authcore.services._shared.clock import Clock, SystemClock
from authcore.services._shared.errors import (
    TokenBlacklistedError,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    TokenTypeMismatchError,
)
from authcore.services.tokens.codec import TokenCodec
from authcore.services.tokens.dto import ACCESS_TOKEN_TYPE, TokenClaims, TokenConfig

if TYPE_CHECKING:
    from authcore.services.revocation.registry import RevocationRegistry

logger = logging.getLogger(__name__)


class TokenVerifier:
    """
    Full validation of a presented token.

    Order of checks: signature/format (codec), expiry against the injected
    clock, declared type, then the revocation registry. The first failing
    check raises; nothing is returned on failure.

    Fails closed: when the revocation lookup itself cannot complete, the
    token is rejected as invalid.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        registry: RevocationRegistry,
        config: TokenConfig,
        clock: Clock | None = None,
    ) -> None:
        self.codec = codec
        self.registry = registry
        self.cfg = config
        self.clock = clock or SystemClock()

    def verify(self, token: str, expected_type: str) -> TokenClaims:
        """
        Validate ``token`` and return its claims.

        :param token: Encoded token.
        :param expected_type: ``access``, ``refresh`` or a single-use kind.
        :raises TokenInvalidError: Bad signature/format, issuer or audience,
            or the revocation lookup is unavailable.
        :raises TokenExpiredError: ``exp`` has passed.
        :raises TokenTypeMismatchError: ``type`` claim differs.
        :raises TokenBlacklistedError: Token was revoked.
        """
        claims = self.codec.parse(token, self.cfg.secret_for(expected_type))

        now = self.clock.now()
        if now.timestamp() >= claims.exp + self.cfg.leeway.total_seconds():
            raise TokenExpiredError(f"{claims.type} token expired at {claims.expires_at.isoformat()}")

        if claims.type != expected_type:
            raise TokenTypeMismatchError(f"expected {expected_type!r}, got {claims.type!r}")

        identifier = self.codec.token_identifier(token, claims)
        try:
            revoked = self.registry.is_revoked(identifier)
        except TokenError:
            raise
        except Exception as exc:
            logger.error(
                "Revocation lookup failed; rejecting token",
                exc_info=True,
                extra={"token_type": expected_type, "user_id": claims.sub},
            )
            raise TokenInvalidError("revocation lookup unavailable") from exc

        if revoked:
            raise TokenBlacklistedError(f"{claims.type} token has been revoked")
        return claims

    def verify_access(self, token: str) -> TokenClaims:
        """Shortcut for ``verify(token, "access")``."""
        return self.verify(token, ACCESS_TOKEN_TYPE)
