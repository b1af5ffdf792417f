"""Problem-details (RFC 7807) responses for every error the API returns.

Clients always receive ``application/problem+json`` with ``status``,
``title``, ``detail``, a stable snake_case ``code`` and the request id.
Server-side failures are logged with their traceback but answered with a
generic detail only.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from tokengate.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"


def status_code_name(status: int) -> str:
    """``404`` -> ``"not_found"``; unknown statuses map to ``"error"``."""
    try:
        return HTTPStatus(status).name.lower()
    except ValueError:
        return "error"


def as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Problem body for ``status`` with ``message`` as its ``detail``."""
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": message,
        "code": code,
        "instance": request.path if has_request_context() else None,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details
    return problem


def problem_response(problem: dict[str, Any], headers: dict[str, str] | None = None) -> Response:
    resp = jsonify(problem)
    resp.status_code = int(problem["status"])
    resp.mimetype = PROBLEM_MIMETYPE
    resp.headers.update(headers or {})
    return resp


class APIError(Exception):
    """An error the API answers with a problem response.

    ``headers`` are copied onto the response (``Retry-After`` for 429).
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "bad_request"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code or self.status_code)
        self.code = code or self.code
        self.details = details or {}
        self.headers = headers or {}

    def to_problem(self) -> dict[str, Any]:
        return as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details,
        )


class NotFound(APIError):
    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class Unauthorized(APIError):
    """401 for any credential problem.

    External-token, refresh-token and access-token failures share the status;
    only ``code`` and ``detail`` tell them apart.
    """

    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", code: str | None = None) -> None:
        super().__init__(message, code=code, headers={"WWW-Authenticate": "Bearer"})


class TooManyRequests(APIError):
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    code = "too_many_requests"

    def __init__(self, message: str = "Too many requests", retry_after: int | None = None) -> None:
        headers = {"Retry-After": str(int(retry_after))} if retry_after else None
        super().__init__(message, headers=headers)


class InternalError(APIError):
    """500 whose cause is logged and never sent to the client."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "internal_server_error"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


def _emit(problem: dict[str, Any], *, exc_info: Any = None) -> None:
    status = problem["status"]
    if status >= 500:
        log.error("problem %s %s", status, problem["code"], exc_info=exc_info or True)
    else:
        log.warning("problem %s %s: %s", status, problem["code"], problem["detail"])


def _api_error(err: APIError) -> Response:
    problem = err.to_problem()
    # Translated service errors carry the original failure as ``__cause__``.
    _emit(problem, exc_info=err.__cause__ or err)
    return problem_response(problem, err.headers)


def _http_exception(err: HTTPException) -> Response:
    status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
    if status == HTTPStatus.NOT_FOUND:
        message = f"Route '{request.path}' not found"
    else:
        message = (err.description or HTTPStatus(status).phrase).strip()
    problem = as_problem(status=status, code=status_code_name(status), message=message)
    _emit(problem, exc_info=err)
    return problem_response(problem)


def _validation_error(err: ValidationError) -> Response:
    problem = as_problem(
        status=HTTPStatus.UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": err.messages},
    )
    _emit(problem)
    return problem_response(problem)


def _database_unavailable(err: OperationalError) -> Response:
    problem = as_problem(
        status=HTTPStatus.SERVICE_UNAVAILABLE,
        code="service_unavailable",
        message="Service temporarily unavailable",
    )
    _emit(problem, exc_info=err)
    return problem_response(problem)


def _unexpected(err: Exception) -> Response:
    problem = as_problem(
        status=HTTPStatus.INTERNAL_SERVER_ERROR,
        code="internal_server_error",
        message="Internal server error",
    )
    _emit(problem, exc_info=err)
    return problem_response(problem)


HANDLERS = (
    (APIError, _api_error),
    (HTTPException, _http_exception),
    (ValidationError, _validation_error),
    (OperationalError, _database_unavailable),
    (Exception, _unexpected),
)


def init_app(app: Flask) -> None:
    """Answer every error raised by a view with a problem response."""
    for exc_type, handler in HANDLERS:
        app.register_error_handler(exc_type, handler)
