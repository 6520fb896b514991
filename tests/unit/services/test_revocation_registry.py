# tests/unit/services/test_revocation_registry.py
from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from authcore.services._shared.clock import to_timestamp
from authcore.services._shared.digest import token_digest
from authcore.services._shared.ports import InMemoryRevocationStore
from authcore.services.revocation.registry import RevocationRegistry
from authcore.services.tokens.codec import TokenCodec

SECRET = "registry-secret-with-enough-entropy-0000001"


# --- Fixtures ---------------------------------------------------------------
@pytest.fixture()
def store():
    return InMemoryRevocationStore()


@pytest.fixture()
def codec():
    return TokenCodec()


@pytest.fixture()
def registry(store, codec, clock):
    return RevocationRegistry(store=store, codec=codec, clock=clock, buffer=timedelta(seconds=60))


def _token(codec, clock, ttl=timedelta(minutes=10), **extra):
    claims = {"sub": "u-1", "email": "a@example.com", "type": "access", "roles": ["user"]}
    claims.update(extra)
    return codec.sign(claims, SECRET, ttl, now=clock.now())


# --- Tests ------------------------------------------------------------------
def test_revoke_stores_entry_until_exp_plus_buffer(registry, store, codec, clock):
    token = _token(codec, clock)

    assert registry.revoke(token, reason="logout") is True

    entry = store.get(codec.peek(token)["jti"])
    assert entry is not None
    assert entry.reason == "logout"
    assert entry.expires_at == clock.now() + timedelta(minutes=10, seconds=60)
    assert registry.is_token_revoked(token) is True


def test_revoke_uses_jti_when_present(registry, store, codec, clock):
    token = codec.sign(
        {"sub": "u-1", "email": "a@example.com", "type": "refresh", "jti": "sess-42"},
        SECRET,
        timedelta(days=1),
        now=clock.now(),
    )
    registry.revoke(token)
    assert store.get("sess-42") is not None
    assert registry.is_revoked("sess-42") is True


def test_token_without_jti_is_keyed_by_digest(registry, store, clock):
    foreign = jwt.encode(
        {"sub": "u-1", "exp": to_timestamp(clock.now() + timedelta(minutes=5))}, SECRET, algorithm="HS256"
    )
    assert registry.revoke(foreign) is True
    assert store.get(token_digest(foreign)) is not None
    assert registry.is_token_revoked(foreign) is True


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_revoking_unparseable_token_is_a_noop(registry, store, token):
    assert registry.revoke(token) is False
    assert len(store) == 0


def test_revoking_expired_token_is_a_noop(registry, store, codec, clock):
    token = _token(codec, clock, ttl=timedelta(minutes=1))
    clock.advance(minutes=2)
    assert registry.revoke(token) is False
    assert len(store) == 0


def test_lookup_evicts_entries_past_expiry(registry, store, codec, clock):
    token = _token(codec, clock)
    registry.revoke(token)

    clock.advance(minutes=10, seconds=59)
    assert registry.is_token_revoked(token) is True

    clock.advance(seconds=2)
    assert registry.is_token_revoked(token) is False
    assert len(store) == 0


def test_blacklist_holds_until_expiry_then_sweep_purges(registry, store, codec, clock):
    short = _token(codec, clock, ttl=timedelta(minutes=5), email="short@example.com")
    long = _token(codec, clock, ttl=timedelta(hours=1), email="long@example.com")
    registry.revoke(short)
    registry.revoke(long)

    assert registry.sweep() == 0

    clock.advance(minutes=10)
    assert registry.sweep() == 1
    assert registry.sweep() == 0
    assert registry.is_token_revoked(long) is True
    assert len(store) == 1


def test_revoking_twice_keeps_longest_entry(registry, store, clock):
    later = clock.now() + timedelta(hours=2)
    registry.revoke_identifier("id-1", later, "logout")
    registry.revoke_identifier("id-1", clock.now() + timedelta(minutes=5), "logout_all")

    assert store.get("id-1").expires_at == later + timedelta(seconds=60)
