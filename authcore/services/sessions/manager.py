# authcore/services/sessions/manager.py
from __future__ import annotations

import logging
from collections.abc import Callable

from authcore.services._shared.clock import Clock, SystemClock, from_timestamp, to_timestamp
from authcore.services._shared.digest import new_session_id, token_digest
from authcore.services._shared.errors import (
    GENERIC_REFRESH_MESSAGE,
    TokenError,
    TokenInvalidError,
    TokenNotFoundError,
)
from authcore.services._shared.ports.refresh_session_store import (
    ROTATION_REASON,
    RefreshSessionRecord,
    RefreshSessionStore,
    SessionState,
)
from authcore.services.revocation.registry import RevocationRegistry
from authcore.services.sessions.dto import SessionView
from authcore.services.tokens.codec import TokenCodec
from authcore.services.tokens.dto import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    SessionMetadata,
    TokenClaims,
    TokenConfig,
    TokenPair,
    TokenSubject,
)
from authcore.services.tokens.verifier import TokenVerifier

logger = logging.getLogger(__name__)

SESSION_LIMIT_REASON = "session_limit"
REUSE_DETECTED_REASON = "reuse_detected"

SubjectResolver = Callable[[TokenClaims], TokenSubject | None]


class SessionManager:
    """
    Refresh-session lifecycle: issuance, rotation and revocation.

    Security
    --------
    - A refresh token is consumable exactly once. The single point of truth
      is the store's conditional ``revoke(id, "rotation")``: of two racing
      rotations, only the caller whose update transitions the row wins.
    - Any failure aborts the call before a new pair is issued.
    - Persistence errors on the rotation path propagate; only
      ``touch_last_used`` and access-token blacklisting are best-effort.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        verifier: TokenVerifier,
        registry: RevocationRegistry,
        store: RefreshSessionStore,
        config: TokenConfig,
        clock: Clock | None = None,
        max_sessions_per_user: int | None = None,
        revoke_family_on_reuse: bool = False,
        subject_resolver: SubjectResolver | None = None,
    ) -> None:
        """
        :param subject_resolver: Optional lookup returning the current principal
            (fresh roles) for verified refresh claims, or ``None`` when the user
            no longer exists. Defaults to the claims' ``sub``/``email`` with the
            default role set.
        """
        self.codec = codec
        self.verifier = verifier
        self.registry = registry
        self.store = store
        self.cfg = config
        self.clock = clock or SystemClock()
        self.max_sessions_per_user = max_sessions_per_user
        self.revoke_family_on_reuse = revoke_family_on_reuse
        self.subject_resolver = subject_resolver

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue_pair(self, subject: TokenSubject, metadata: SessionMetadata | None = None) -> TokenPair:
        """
        Sign an access/refresh pair and persist a new ACTIVE session.

        :raises EncodingError: When the subject lacks required fields.
        """
        meta = metadata or SessionMetadata()
        now = self.clock.now()
        session_id = new_session_id()

        access = self.codec.sign(
            {"sub": subject.id, "email": subject.email, "type": ACCESS_TOKEN_TYPE, "roles": subject.roles},
            self.cfg.access_secret,
            self.cfg.access_expires,
            now=now,
        )
        refresh = self.codec.sign(
            {"sub": subject.id, "email": subject.email, "type": REFRESH_TOKEN_TYPE, "jti": session_id},
            self.cfg.refresh_secret,
            self.cfg.refresh_expires,
            now=now,
        )

        self.store.create(
            RefreshSessionRecord(
                id=session_id,
                user_id=subject.id,
                token_hash=token_digest(refresh),
                created_at=now,
                # same second-precision instant as the token's exp
                expires_at=from_timestamp(to_timestamp(now + self.cfg.refresh_expires)),
                last_used_at=now,
                device_info=dict(meta.device_info or {}),
                ip_address=meta.ip_address,
                user_agent=meta.user_agent,
            )
        )
        logger.info("Session issued", extra={"user_id": subject.id, "session_id": session_id})

        if self.max_sessions_per_user:
            self._enforce_session_limit(subject.id, keep=session_id)

        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=int(self.cfg.access_expires.total_seconds()),
        )

    def _enforce_session_limit(self, user_id: str, *, keep: str) -> None:
        limit = self.max_sessions_per_user or 0
        now = self.clock.now()
        others = [r for r in self.store.find_active_by_user(user_id, now=now) if r.id != keep]
        excess = others[max(limit - 1, 0):]
        revoked = sum(
            1 for r in excess if self.store.revoke(r.id, SESSION_LIMIT_REASON, now=now)
        )
        if revoked:
            logger.info(
                "Oldest sessions revoked over limit",
                extra={"user_id": user_id, "count": revoked, "reason": SESSION_LIMIT_REASON},
            )

    # ------------------------------------------------------------------ #
    # Rotation
    # ------------------------------------------------------------------ #

    def rotate(self, refresh_token: str, metadata: SessionMetadata | None = None) -> TokenPair:
        """
        Consume ``refresh_token`` and issue a new pair.

        Steps
        -----
        1. Verify the token as ``refresh`` (signature, expiry, blacklist).
        2. Load its session; it must exist and be ACTIVE.
        3. Conditionally mark it ROTATED; losing the race is a failure.
        4. Issue the replacement pair.

        :raises TokenError: Any failed check. ``public_message`` is set to the
            generic refresh message regardless of the specific kind.
        """
        try:
            claims = self.verifier.verify(refresh_token, REFRESH_TOKEN_TYPE)
            record = self.store.find_by_token(refresh_token)
            if record is None:
                raise TokenNotFoundError("refresh session not found")
            if record.id != claims.jti or record.user_id != claims.sub:
                raise TokenInvalidError("refresh session does not match token claims")

            now = self.clock.now()
            state = record.state(now)
            if state is not SessionState.ACTIVE:
                if state is SessionState.ROTATED and self.revoke_family_on_reuse:
                    self._revoke_family(record.user_id)
                raise TokenInvalidError(f"refresh session is {state.value}")

            subject = self._resolve_subject(claims)

            if not self.store.revoke(record.id, ROTATION_REASON, now=now):
                raise TokenInvalidError("refresh session already consumed")
        except TokenError as err:
            err.public_message = GENERIC_REFRESH_MESSAGE
            logger.warning("Refresh rejected: %s", err.detail, extra={"kind": err.kind.value})
            raise

        self._touch(record.id)
        pair = self.issue_pair(subject, metadata or self._metadata_of(record))
        logger.info("Session rotated", extra={"user_id": record.user_id, "session_id": record.id})
        return pair

    def _resolve_subject(self, claims: TokenClaims) -> TokenSubject:
        if self.subject_resolver is None:
            return TokenSubject(id=claims.sub, email=claims.email)
        subject = self.subject_resolver(claims)
        if subject is None:
            raise TokenNotFoundError("token subject no longer exists")
        return subject

    def _revoke_family(self, user_id: str) -> None:
        count = self.store.revoke_all_for_user(user_id, REUSE_DETECTED_REASON, now=self.clock.now())
        logger.warning(
            "Rotated refresh token replayed; all sessions revoked",
            extra={"user_id": user_id, "count": count, "reason": REUSE_DETECTED_REASON},
        )

    def _touch(self, session_id: str) -> None:
        try:
            self.store.touch_last_used(session_id, now=self.clock.now())
        except Exception:
            logger.warning("touch_last_used failed", exc_info=True, extra={"session_id": session_id})

    @staticmethod
    def _metadata_of(record: RefreshSessionRecord) -> SessionMetadata:
        return SessionMetadata(
            device_info=dict(record.device_info or {}),
            ip_address=record.ip_address,
            user_agent=record.user_agent,
        )

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke(
        self,
        session_id_or_token: str,
        reason: str = "logout",
        *,
        access_token: str | None = None,
        user_id: str | None = None,
    ) -> bool:
        """
        Revoke one session, identified by id or by its refresh token.

        :param access_token: Paired access token to blacklist (best-effort).
        :param user_id: When given, only a session owned by this user is revoked.
        :returns: ``True`` if this call transitioned the session; ``False`` when
            it was unknown, foreign, or already inactive.
        """
        if "." in session_id_or_token:
            record = self.store.find_by_token(session_id_or_token)
        else:
            record = self.store.get(session_id_or_token)

        revoked = False
        if record is not None and (user_id is None or record.user_id == user_id):
            revoked = self.store.revoke(record.id, reason, now=self.clock.now())
            if revoked:
                logger.info(
                    "Session revoked",
                    extra={"user_id": record.user_id, "session_id": record.id, "reason": reason},
                )

        if access_token:
            self._blacklist_access(access_token, reason)
        return revoked

    def revoke_all(self, user_id: str, reason: str = "logout_all", *, access_token: str | None = None) -> int:
        """Revoke every ACTIVE session of ``user_id``. :returns: count."""
        count = self.store.revoke_all_for_user(user_id, reason, now=self.clock.now())
        logger.info("All sessions revoked", extra={"user_id": user_id, "count": count, "reason": reason})
        if access_token:
            self._blacklist_access(access_token, reason)
        return count

    def logout(self, refresh_token: str, access_token: str | None = None) -> bool:
        """Revoke the session behind ``refresh_token`` and blacklist ``access_token``."""
        return self.revoke(refresh_token, "logout", access_token=access_token)

    def _blacklist_access(self, access_token: str, reason: str) -> None:
        # only tokens signed with the access secret reach the registry
        try:
            claims = self.codec.parse(access_token, self.cfg.access_secret)
        except TokenError as err:
            logger.info("Access token not blacklisted", extra={"kind": err.kind.value})
            return
        try:
            self.registry.revoke_identifier(
                self.codec.token_identifier(access_token, claims), claims.expires_at, reason
            )
        except Exception:
            logger.warning("Access token blacklisting failed", exc_info=True, extra={"user_id": claims.sub})

    # ------------------------------------------------------------------ #
    # Queries & maintenance
    # ------------------------------------------------------------------ #

    def list_active_sessions(self, user_id: str, *, current_session_id: str | None = None) -> list[SessionView]:
        """Valid sessions of ``user_id`` for display, most recently used first."""
        records = self.store.find_active_by_user(user_id, now=self.clock.now())
        return [SessionView.from_record(r, current_id=current_session_id) for r in records]

    def verify_access(self, token: str) -> TokenClaims:
        return self.verifier.verify_access(token)

    def active_session_count(self, user_id: str | None = None) -> int:
        """Valid sessions of ``user_id``, or of every user."""
        return self.store.count_active(user_id, now=self.clock.now())

    def purge_stale_sessions(self) -> int:
        count = self.store.purge_stale(now=self.clock.now())
        if count:
            logger.info("Stale sessions purged", extra={"count": count})
        return count
