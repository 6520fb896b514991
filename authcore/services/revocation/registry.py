# authcore/services/revocation/registry.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from authcore.services._shared.clock import Clock, SystemClock, from_timestamp
from authcore.services._shared.ports.revocation_store import RevocationEntry, RevocationStore
from authcore.services.tokens.codec import TokenCodec

logger = logging.getLogger(__name__)

DEFAULT_BUFFER = timedelta(seconds=60)


class RevocationRegistry:
    """
    Time-bounded blacklist of token identifiers.

    Entries live until the revoked token's own ``exp`` plus a small safety
    buffer, so the registry never grows beyond the set of still-usable
    revoked tokens. Eviction happens lazily on lookup and in :meth:`sweep`.

    :param store: Backing store (in-memory per instance, or shared).
    :param codec: Used to read ``exp``/``jti`` from tokens being revoked.
    :param clock: Time source.
    :param buffer: Extra lifetime added to each entry.
    """

    def __init__(
        self,
        *,
        store: RevocationStore,
        codec: TokenCodec,
        clock: Clock | None = None,
        buffer: timedelta = DEFAULT_BUFFER,
    ) -> None:
        self.store = store
        self.codec = codec
        self.clock = clock or SystemClock()
        self.buffer = buffer

    def revoke(self, token: str, reason: str = "logout") -> bool:
        """
        Blacklist ``token`` until its natural expiry (plus buffer).

        Best-effort: an unparseable or already expired token is a no-op.

        :returns: ``True`` when an entry was written.
        """
        payload = self.codec.peek(token)
        if not payload or "exp" not in payload:
            logger.debug("Skipping revocation of unparseable token")
            return False
        try:
            expires_at = from_timestamp(payload["exp"])
        except (TypeError, ValueError, OverflowError):
            return False
        return self.revoke_identifier(
            self.codec.token_identifier(token, payload), expires_at, reason
        )

    def revoke_identifier(self, identifier: str, expires_at: datetime, reason: str = "logout") -> bool:
        """Blacklist an identifier whose token expires at ``expires_at``."""
        now = self.clock.now()
        if expires_at <= now:
            return False
        self.store.set(
            RevocationEntry(identifier=identifier, expires_at=expires_at + self.buffer, reason=reason)
        )
        logger.info("Token revoked", extra={"reason": reason})
        return True

    def is_revoked(self, identifier: str) -> bool:
        """
        Look ``identifier`` up, evicting the entry if it is past its expiry.

        Store errors propagate; the verifier turns them into a rejection.
        """
        entry = self.store.get(identifier)
        if entry is None:
            return False
        if entry.expires_at < self.clock.now():
            self.store.delete(identifier)
            return False
        return True

    def is_token_revoked(self, token: str) -> bool:
        payload = self.codec.peek(token)
        return self.is_revoked(self.codec.token_identifier(token, payload))

    def size(self) -> int:
        """Entries currently held, including ones not yet evicted."""
        return self.store.count()

    def sweep(self) -> int:
        """Purge every entry past its expiry. Idempotent; returns the count."""
        purged = self.store.sweep(self.clock.now())
        if purged:
            logger.info("Revocation entries purged", extra={"count": purged})
        return purged
