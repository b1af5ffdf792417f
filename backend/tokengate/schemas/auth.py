"""Authentication-related Marshmallow schemas (camelCase on the wire)."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for exchanging an identity-provider token."""

    class Meta:
        unknown = EXCLUDE

    azure_token = fields.String(
        required=True, data_key="azureToken", validate=validate.Length(min=1)
    )


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1)
    )


class TokenPairSchema(Schema):
    """Response payload for login and refresh."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    expires_in = fields.Integer(required=True, data_key="expiresIn")
    user_email = fields.String(required=True, data_key="userEmail")


class ValidateSchema(Schema):
    """Response payload echoing the verified access-token identity."""

    authenticated = fields.Boolean(required=True)
    email = fields.String(required=True)
    name = fields.String(required=True)


class MessageSchema(Schema):
    message = fields.String(required=True)
