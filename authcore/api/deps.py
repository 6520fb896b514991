"""Shared API helpers for bearer authentication."""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import current_app, g, request

from authcore.core.errors import Forbidden, Unauthorized
from authcore.services.container import AuthServices
from authcore.services.tokens.dto import TokenClaims

F = TypeVar("F", bound=Callable[..., Any])

EXTENSION_KEY = "authcore"

_BEARER_RE = re.compile(r"^Bearer ([A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*)$")


def extract_bearer_token(header: str | None) -> str | None:
    """
    Return the token of an ``Authorization: Bearer <token>`` header.

    Never raises: a missing, empty or malformed header yields ``None``.
    """
    if not header or not isinstance(header, str):
        return None
    match = _BEARER_RE.match(header.strip())
    return match.group(1) if match else None


def get_services() -> AuthServices:
    """Return the service graph registered by the application factory."""
    return cast(AuthServices, current_app.extensions[EXTENSION_KEY])


def current_claims() -> TokenClaims | None:
    """Claims verified by :func:`require_auth` for the current request."""
    return cast(TokenClaims | None, getattr(g, "token_claims", None))


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access token.

    The verified claims are exposed through :func:`current_claims`. Every
    failure becomes the same generic 401.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise Unauthorized("Access token required")
        g.token_claims = get_services().sessions.verify_access(token)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(required: str) -> Callable[[F], F]:
    """Like :func:`require_auth`, additionally requiring ``required`` in ``roles``."""

    def decorator(func: F) -> F:
        @require_auth
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            claims = current_claims()
            if claims is None or required not in claims.roles:
                raise Forbidden("Insufficient permissions")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
