"""Authentication endpoints backed by :class:`SessionManager`."""

from __future__ import annotations

from flask import Blueprint, request

from tokengate.api.deps import (
    build_session_manager,
    call_service,
    current_identity,
    device_info,
    json_response,
    require_auth,
)
from tokengate.schemas import (
    LoginSchema,
    MessageSchema,
    RefreshSchema,
    TokenPairSchema,
    ValidateSchema,
)
from tokengate.services.auth import LoginIn, RefreshIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
token_pair_schema = TokenPairSchema()
validate_schema = ValidateSchema()
message_schema = MessageSchema()


@bp.post("/login")
def login():
    """Exchange an identity-provider token for an access/refresh pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    manager = build_session_manager()
    pair = call_service(
        manager,
        manager.login,
        LoginIn(external_token=data["azure_token"], device_info=device_info()),
    )
    return json_response(token_pair_schema.dump(pair))


@bp.post("/refresh")
def refresh():
    """Rotate a refresh token."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    manager = build_session_manager()
    pair = call_service(
        manager,
        manager.refresh,
        RefreshIn(refresh_token=data["refresh_token"], device_info=device_info()),
    )
    return json_response(token_pair_schema.dump(pair))


@bp.post("/logout")
@require_auth
def logout():
    """Revoke every active refresh token of the caller."""

    identity = current_identity()
    manager = build_session_manager()
    call_service(manager, manager.logout, identity.user_id)
    return json_response(message_schema.dump({"message": "Logged out successfully"}))


@bp.get("/validate")
@require_auth
def validate():
    """Echo the verified identity of the access token."""

    manager = build_session_manager()
    out = manager.validate(current_identity())
    return json_response(validate_schema.dump(out))
