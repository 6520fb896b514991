# authcore/services/container.py
"""Explicit construction of the token services from configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import redis  # type: ignore[import-untyped]

from authcore.services._shared.clock import Clock, SystemClock
from authcore.services._shared.ports import (
    InMemoryMarkerStore,
    InMemoryRefreshSessionStore,
    InMemoryRevocationStore,
    RefreshSessionStore,
    RevocationStore,
    SingleUseMarkerStore,
)
from authcore.services.maintenance import MaintenanceSweeper
from authcore.services.revocation.registry import RevocationRegistry
from authcore.services.sessions.manager import SessionManager, SubjectResolver
from authcore.services.special_tokens.service import SpecialTokenService
from authcore.services.tokens.codec import TokenCodec
from authcore.services.tokens.dto import EMAIL_VERIFICATION_TYPE, PASSWORD_RESET_TYPE, TokenConfig
from authcore.services.tokens.verifier import TokenVerifier


@dataclass(slots=True)
class AuthServices:
    """The wired service graph for one application instance."""

    codec: TokenCodec
    verifier: TokenVerifier
    registry: RevocationRegistry
    sessions: SessionManager
    special_tokens: SpecialTokenService
    sweeper: MaintenanceSweeper

    def stats(self) -> dict[str, int]:
        """Point-in-time counts for operator output."""
        return {
            "revoked_tokens": self.registry.size(),
            "pending_single_use_tokens": self.special_tokens.pending_count(),
            "active_sessions": self.sessions.active_session_count(),
        }


def token_config_from(config: Mapping[str, Any]) -> TokenConfig:
    return TokenConfig(
        access_secret=config["JWT_ACCESS_SECRET"],
        refresh_secret=config["JWT_REFRESH_SECRET"],
        access_expires=config.get("JWT_ACCESS_EXPIRES", timedelta(hours=1)),
        refresh_expires=config.get("JWT_REFRESH_EXPIRES", timedelta(days=7)),
        leeway=timedelta(seconds=int(config.get("JWT_LEEWAY_SECONDS") or 0)),
    )


def build_services(
    config: Mapping[str, Any],
    *,
    session_store: RefreshSessionStore | None = None,
    redis_client: redis.Redis | None = None,
    clock: Clock | None = None,
    subject_resolver: SubjectResolver | None = None,
) -> AuthServices:
    """
    Assemble codec, verifier, registry, session manager and single-use service.

    :param config: Flask config (or any mapping with the same keys).
    :param session_store: Refresh session store; in-memory when omitted.
    :param redis_client: When given, revocation entries and single-use markers
        live in Redis (shared across instances); otherwise in process memory.
    :param clock: Time source shared by every component.
    """
    clock = clock or SystemClock()
    token_cfg = token_config_from(config)

    revocations: RevocationStore
    markers: SingleUseMarkerStore
    if redis_client is not None:
        from authcore.infra.redis.redis_marker_store import RedisMarkerStore
        from authcore.infra.redis.redis_revocation_store import RedisRevocationStore

        revocations = RedisRevocationStore(redis_client, clock=clock)
        markers = RedisMarkerStore(redis_client, clock=clock)
    else:
        revocations = InMemoryRevocationStore()
        markers = InMemoryMarkerStore()

    codec = TokenCodec(
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
        issuer=config.get("JWT_ISSUER", "authcore"),
        audience=config.get("JWT_AUDIENCE", "authcore-client"),
    )
    registry = RevocationRegistry(
        store=revocations,
        codec=codec,
        clock=clock,
        buffer=timedelta(seconds=int(config.get("REVOCATION_BUFFER_SECONDS") or 0)),
    )
    verifier = TokenVerifier(codec=codec, registry=registry, config=token_cfg, clock=clock)
    sessions = SessionManager(
        codec=codec,
        verifier=verifier,
        registry=registry,
        store=session_store or InMemoryRefreshSessionStore(),
        config=token_cfg,
        clock=clock,
        max_sessions_per_user=config.get("MAX_SESSIONS_PER_USER"),
        revoke_family_on_reuse=bool(config.get("REVOKE_FAMILY_ON_REUSE", False)),
        subject_resolver=subject_resolver,
    )
    special_tokens = SpecialTokenService(
        codec=codec,
        verifier=verifier,
        markers=markers,
        config=token_cfg,
        clock=clock,
        ttls={
            EMAIL_VERIFICATION_TYPE: config.get("EMAIL_VERIFICATION_EXPIRES", timedelta(hours=24)),
            PASSWORD_RESET_TYPE: config.get("PASSWORD_RESET_EXPIRES", timedelta(hours=1)),
        },
    )
    sweeper = MaintenanceSweeper(
        {
            "revocations": registry.sweep,
            "single_use_markers": special_tokens.sweep,
            "sessions": sessions.purge_stale_sessions,
        },
        interval_seconds=float(config.get("SWEEP_INTERVAL_SECONDS") or 3600),
    )
    return AuthServices(
        codec=codec,
        verifier=verifier,
        registry=registry,
        sessions=sessions,
        special_tokens=special_tokens,
        sweeper=sweeper,
    )
