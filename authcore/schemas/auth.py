"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class RefreshRequestSchema(Schema):
    """Input payload for token rotation."""

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1)
    )


class TokenPairSchema(Schema):
    """Response payload of issuance and rotation (``TokenPair``)."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    expires_in = fields.Integer(required=True, data_key="expiresIn")
    token_type = fields.String(data_key="tokenType", dump_default="Bearer")


class SessionSchema(Schema):
    """Active session as listed to its owner (``SessionView``). No token material."""

    id = fields.String(required=True)
    device = fields.String(required=True)
    device_info = fields.Dict(data_key="deviceInfo")
    ip_address = fields.String(allow_none=True, data_key="ipAddress")
    user_agent = fields.String(allow_none=True, data_key="userAgent")
    created_at = fields.AwareDateTime(data_key="createdAt")
    last_used_at = fields.AwareDateTime(data_key="lastUsedAt")
    expires_at = fields.AwareDateTime(data_key="expiresAt")
    is_current = fields.Boolean(data_key="isCurrent")
