# tests/unit/services/test_token_codec.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from authcore.services._shared.digest import token_digest
from authcore.services._shared.errors import (
    EncodingError,
    MalformedTokenError,
    SignatureMismatchError,
    TokenInvalidError,
)
from authcore.services.tokens.codec import TokenCodec

SECRET = "codec-test-secret-with-enough-entropy-000001"
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def codec() -> TokenCodec:
    return TokenCodec(algorithm="HS256", issuer="authcore", audience="authcore-client")


def _access_claims(**extra):
    claims = {"sub": "u-1", "email": "a@example.com", "type": "access", "roles": ["user"]}
    claims.update(extra)
    return claims


# ------------------------------ sign/parse -------------------------------- #
def test_sign_embeds_standard_claims(codec):
    token = codec.sign(_access_claims(), SECRET, timedelta(hours=1), now=NOW)
    claims = codec.parse(token, SECRET)

    assert claims.sub == "u-1"
    assert claims.email == "a@example.com"
    assert claims.type == "access"
    assert claims.roles == ("user",)
    assert claims.iss == "authcore"
    assert claims.aud == "authcore-client"
    assert claims.issued_at == NOW
    assert claims.expires_at == NOW + timedelta(hours=1)
    assert len(claims.jti) == 32


def test_refresh_token_carries_jti(codec):
    token = codec.sign(
        {"sub": "u-1", "email": "a@example.com", "type": "refresh", "jti": "abc123"},
        SECRET,
        timedelta(days=7),
        now=NOW,
    )
    claims = codec.parse(token, SECRET)
    assert claims.jti == "abc123"
    assert "roles" not in jwt.decode(token, options={"verify_signature": False})


def test_parse_does_not_check_expiry(codec):
    token = codec.sign(_access_claims(), SECRET, timedelta(minutes=1), now=NOW - timedelta(days=30))
    assert codec.parse(token, SECRET).sub == "u-1"


@pytest.mark.parametrize(
    "claims",
    [
        {"email": "a@example.com", "type": "access", "roles": []},
        {"sub": "u-1", "type": "access", "roles": []},
        {"sub": "u-1", "email": "a@example.com", "roles": []},
        {"sub": "u-1", "email": "a@example.com", "type": "access"},
        {"sub": "u-1", "email": "a@example.com", "type": "refresh"},
        {"sub": "", "email": "a@example.com", "type": "password_reset"},
    ],
)
def test_sign_rejects_incomplete_claims(codec, claims):
    with pytest.raises(EncodingError):
        codec.sign(claims, SECRET, timedelta(hours=1), now=NOW)


def test_sign_rejects_non_positive_ttl(codec):
    with pytest.raises(EncodingError):
        codec.sign(_access_claims(), SECRET, timedelta(0), now=NOW)


# ------------------------------- failures --------------------------------- #
def test_wrong_secret_is_signature_mismatch(codec):
    token = codec.sign(_access_claims(), SECRET, timedelta(hours=1), now=NOW)
    with pytest.raises(SignatureMismatchError) as exc_info:
        codec.parse(token, "another-secret-with-enough-entropy-0000002")
    assert isinstance(exc_info.value, TokenInvalidError)


def test_unexpected_algorithm_is_rejected(codec):
    payload = {
        "sub": "u-1",
        "email": "a@example.com",
        "type": "access",
        "roles": [],
        "iat": int(NOW.timestamp()),
        "exp": int(NOW.timestamp()) + 60,
        "iss": "authcore",
        "aud": "authcore-client",
    }
    hs512 = jwt.encode(payload, SECRET, algorithm="HS512")
    unsigned = jwt.encode(payload, None, algorithm="none")

    with pytest.raises(SignatureMismatchError):
        codec.parse(hs512, SECRET)
    with pytest.raises(SignatureMismatchError):
        codec.parse(unsigned, SECRET)


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "Bearer x.y.z"])
def test_garbage_is_malformed(codec, garbage):
    with pytest.raises(MalformedTokenError):
        codec.parse(garbage, SECRET)


def test_missing_claim_is_malformed(codec):
    token = jwt.encode(
        {
            "sub": "u-1",
            "type": "access",
            "iat": int(NOW.timestamp()),
            "exp": int(NOW.timestamp()) + 60,
            "iss": "authcore",
            "aud": "authcore-client",
        },
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(MalformedTokenError):
        codec.parse(token, SECRET)


def test_wrong_issuer_or_audience_is_invalid(codec):
    other_issuer = TokenCodec(issuer="someone-else", audience="authcore-client")
    other_audience = TokenCodec(issuer="authcore", audience="another-client")

    for foreign in (other_issuer, other_audience):
        token = foreign.sign(_access_claims(), SECRET, timedelta(hours=1), now=NOW)
        with pytest.raises(TokenInvalidError) as exc_info:
            codec.parse(token, SECRET)
        assert not isinstance(exc_info.value, SignatureMismatchError | MalformedTokenError)


# -------------------------------- helpers --------------------------------- #
def test_token_identifier_prefers_jti(codec):
    access = codec.sign(_access_claims(), SECRET, timedelta(hours=1), now=NOW)
    refresh = codec.sign(
        {"sub": "u-1", "email": "a@example.com", "type": "refresh", "jti": "sess-1"},
        SECRET,
        timedelta(days=1),
        now=NOW,
    )
    assert codec.token_identifier(refresh, codec.parse(refresh, SECRET)) == "sess-1"
    access_jti = codec.parse(access, SECRET).jti
    assert codec.token_identifier(access, codec.parse(access, SECRET)) == access_jti
    assert codec.token_identifier(access, codec.peek(access)) == access_jti
    assert codec.token_identifier(access) == token_digest(access)


def test_peek_and_expiry_helpers(codec):
    token = codec.sign(_access_claims(), SECRET, timedelta(minutes=10), now=NOW)

    assert codec.peek(token)["sub"] == "u-1"
    assert codec.peek("garbage") is None
    assert codec.expires_at(token) == NOW + timedelta(minutes=10)
    assert codec.expires_at("garbage") is None
    assert codec.is_expiring_soon(token, timedelta(minutes=15), now=NOW) is True
    assert codec.is_expiring_soon(token, timedelta(minutes=5), now=NOW) is False
    assert codec.is_expiring_soon("garbage", timedelta(minutes=5), now=NOW) is True


def test_same_second_access_tokens_differ(codec):
    first = codec.sign(_access_claims(), SECRET, timedelta(hours=1), now=NOW)
    second = codec.sign(_access_claims(), SECRET, timedelta(hours=1), now=NOW)

    assert first != second
    assert codec.parse(first, SECRET).jti != codec.parse(second, SECRET).jti


def test_explicit_jti_is_kept_for_access_tokens(codec):
    token = codec.sign(_access_claims(jti="given-id"), SECRET, timedelta(hours=1), now=NOW)
    assert codec.parse(token, SECRET).jti == "given-id"
