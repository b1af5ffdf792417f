"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from tokengate.core.logger import ensure_request_id
from tokengate.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from tokengate.services._shared.base import BaseService, ServiceContext, translate_service_error
from tokengate.services._shared.errors import ServiceError, UnauthenticatedError
from tokengate.services._shared.ports.identity_verifier import IdentityVerifier
from tokengate.services._shared.ports.token_provider import ACCESS
from tokengate.services.auth import AuthenticatedIdentity, AuthTokenConfig, SessionManager

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")

IDENTITY_VERIFIER_KEY = "identity_verifier"
MAX_DEVICE_INFO = 512


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token.

    Refresh tokens are refused by Flask-JWT-Extended's type check; the
    ``token_type`` claim is checked as well.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        if get_jwt().get("token_type", ACCESS) != ACCESS:
            raise translate_service_error(UnauthenticatedError("Invalid access token"))
        g.user_id = get_jwt_identity()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_identity() -> AuthenticatedIdentity:
    """Return the identity carried by the verified access token."""

    claims = get_jwt() or {}
    return AuthenticatedIdentity(
        user_id=int(get_jwt_identity()),
        email=str(claims.get("email", "")),
        name=str(claims.get("name", "")),
    )


def device_info() -> str | None:
    """Client descriptor stored with refresh tokens (the ``User-Agent``)."""

    ua = request.headers.get("User-Agent")
    return ua[:MAX_DEVICE_INFO] if ua else None


def service_context(*, actor_id: int | None = None) -> ServiceContext:
    return ServiceContext(actor_id=actor_id, request_id=ensure_request_id())


def build_session_manager() -> SessionManager:
    """Assemble a :class:`SessionManager` from the current app's configuration."""

    verifier: IdentityVerifier = current_app.extensions[IDENTITY_VERIFIER_KEY]
    return SessionManager(
        identity_verifier=verifier,
        token_provider=JWTTokenProvider(),
        token_cfg=AuthTokenConfig.from_mapping(current_app.config),
        ctx=service_context(),
    )


def call_service(service: BaseService, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Invoke a service method, re-raising service errors as API errors."""

    try:
        return fn(*args, **kwargs)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc

