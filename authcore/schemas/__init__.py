"""Marshmallow schemas for the token and session payloads."""

from __future__ import annotations

from authcore.schemas.auth import RefreshRequestSchema, SessionSchema, TokenPairSchema

__all__ = ["RefreshRequestSchema", "SessionSchema", "TokenPairSchema"]
