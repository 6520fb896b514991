# authcore/services/special_tokens/service.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta

from authcore.services._shared.clock import Clock, SystemClock
from authcore.services._shared.digest import token_digest
from authcore.services._shared.errors import EncodingError, TokenError, TokenNotFoundError
from authcore.services._shared.ports.marker_store import SingleUseMarker, SingleUseMarkerStore
from authcore.services.tokens.codec import TokenCodec
from authcore.services.tokens.dto import (
    EMAIL_VERIFICATION_TYPE,
    PASSWORD_RESET_TYPE,
    SPECIAL_TOKEN_TYPES,
    TokenClaims,
    TokenConfig,
    TokenSubject,
)
from authcore.services.tokens.verifier import TokenVerifier

logger = logging.getLogger(__name__)

DEFAULT_TTLS: Mapping[str, timedelta] = {
    EMAIL_VERIFICATION_TYPE: timedelta(hours=24),
    PASSWORD_RESET_TYPE: timedelta(hours=1),
}


class SpecialTokenService:
    """
    Single-use tokens for email verification and password reset.

    A token is accepted only if its signature/expiry verify *and* its
    unconsumed marker is still in the store. Consuming removes the marker
    with an atomic fetch-and-delete, so of two concurrent consumers exactly
    one succeeds.

    The caller applies the side effect (mark email verified, allow the
    password change) and delivers the token; this service sends nothing.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        verifier: TokenVerifier,
        markers: SingleUseMarkerStore,
        config: TokenConfig,
        clock: Clock | None = None,
        ttls: Mapping[str, timedelta] | None = None,
    ) -> None:
        self.codec = codec
        self.verifier = verifier
        self.markers = markers
        self.cfg = config
        self.clock = clock or SystemClock()
        self.ttls = {**DEFAULT_TTLS, **(ttls or {})}

    def issue(self, subject: TokenSubject, kind: str, ttl: timedelta | None = None) -> str:
        """
        Sign a ``kind`` token for ``subject`` and record its unconsumed marker.

        :raises EncodingError: Unknown ``kind``, bad ``ttl`` or incomplete subject.
        """
        if kind not in SPECIAL_TOKEN_TYPES:
            raise EncodingError(f"Unknown single-use token kind {kind!r}")
        lifetime = ttl if ttl is not None else self.ttls[kind]

        now = self.clock.now()
        token = self.codec.sign(
            {"sub": subject.id, "email": subject.email, "type": kind},
            self.cfg.secret_for(kind),
            lifetime,
            now=now,
        )
        self.markers.put(
            token_digest(token),
            SingleUseMarker(
                kind=kind,
                user_id=subject.id,
                email=subject.email,
                expires_at=now + lifetime,
            ),
        )
        logger.info("Single-use token issued", extra={"user_id": subject.id, "token_type": kind})
        return token

    def consume(self, token: str, expected_kind: str) -> TokenClaims:
        """
        Verify ``token`` as ``expected_kind`` and consume it.

        :raises TokenError: Verification failed (expired, wrong kind, ...).
        :raises TokenNotFoundError: Already consumed or never issued.
        """
        try:
            claims = self.verifier.verify(token, expected_kind)
            marker = self.markers.pop(token_digest(token))
            if marker is None:
                raise TokenNotFoundError("single-use token already consumed or unknown")
            if marker.kind != expected_kind or marker.user_id != claims.sub:
                raise TokenNotFoundError("single-use marker does not match token")
            if marker.expires_at <= self.clock.now():
                raise TokenNotFoundError("single-use marker expired")
        except TokenError as err:
            logger.warning(
                "Single-use token rejected: %s",
                err.detail,
                extra={"kind": err.kind.value, "token_type": expected_kind},
            )
            raise

        logger.info("Single-use token consumed", extra={"user_id": claims.sub, "token_type": expected_kind})
        return claims

    def pending_count(self) -> int:
        """Issued single-use tokens whose markers are still held."""
        return self.markers.count()

    def sweep(self) -> int:
        """Drop markers past their expiry. :returns: count."""
        purged = self.markers.sweep(self.clock.now())
        if purged:
            logger.info("Single-use markers purged", extra={"count": purged})
        return purged
