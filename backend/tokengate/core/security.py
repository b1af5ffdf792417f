"""Flask-JWT-Extended callbacks rendering access-token failures as problems."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response

from tokengate.core.errors import as_problem, problem_response
from tokengate.core.extensions import jwt

log = logging.getLogger(__name__)

UNAUTHENTICATED = "unauthenticated"


def unauthenticated_response(message: str) -> Response:
    """Build the 401 problem returned for any access-token failure."""
    problem = as_problem(
        status=HTTPStatus.UNAUTHORIZED,
        code=UNAUTHENTICATED,
        message=message,
    )
    log.info("access token rejected: %s", message)
    resp = problem_response(problem)
    resp.headers["WWW-Authenticate"] = "Bearer"
    return resp


def init_app(app: Flask) -> None:
    """Register the JWT manager callbacks.

    Parameters
    ----------
    app: flask.Flask
        Application whose :data:`~tokengate.core.extensions.jwt` manager has
        already been initialised. Every failure (missing header, bad
        signature, expired, refresh token sent as access token) answers with
        the same 401 problem shape.
    """

    @jwt.unauthorized_loader
    def _missing_token(reason: str) -> Response:
        return unauthenticated_response("Missing access token")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str) -> Response:
        # Includes WrongTokenError raised for refresh tokens.
        return unauthenticated_response("Invalid access token")

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]) -> Response:
        return unauthenticated_response("Access token has expired")
