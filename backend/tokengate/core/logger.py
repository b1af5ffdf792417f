"""JSON logging for the gateway.

Every line carries the request id of the request that produced it. Bearer
credentials are masked before a record is rendered, so raw access or refresh
tokens never reach the log sink even when they appear in a message or in an
``extra=`` value. One access line is emitted per request once the response
is ready.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import time
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")
MAX_REQUEST_ID_LENGTH = 128

ACCESS_LOGGER_NAME = "tokengate.access"

# Attributes passed through ``extra=`` that are copied onto the JSON line.
EXTRA_KEYS = ("endpoint", "method", "path", "elapsed_ms", "user_id", "device_info", "status")

_JWT_PATTERN = re.compile(r"\beyJ[\w-]*\.[\w-]+\.[\w-]*")
_BEARER_PATTERN = re.compile(r"(?i)(bearer\s+)\S+")
_SAFE_REQUEST_ID = re.compile(r"^[\w.:-]+$")
REDACTED = "[redacted]"


def redact(value: str) -> str:
    """Mask JWTs and ``Bearer`` credentials inside ``value``."""

    value = _BEARER_PATTERN.sub(rf"\1{REDACTED}", value)
    return _JWT_PATTERN.sub(REDACTED, value)


class JSONFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, UTC)
        payload: dict[str, Any] = {
            "time": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = redact(value) if isinstance(value, str) else value
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(payload, default=str, ensure_ascii=False)


class RequestContextFilter(logging.Filter):
    """Stamp ``request_id`` (and method/path inside a request) on records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = ensure_request_id()
            record.method = getattr(record, "method", None) or request.method
            record.path = getattr(record, "path", None) or request.path
        elif not hasattr(record, "request_id"):
            record.request_id = None
        return True


def _incoming_request_id() -> str | None:
    for header in CORRELATION_HEADERS:
        value = (request.headers.get(header) or "").strip()
        if value and len(value) <= MAX_REQUEST_ID_LENGTH and _SAFE_REQUEST_ID.match(value):
            return value
    return None


def ensure_request_id() -> str:
    """Return the id bound to the current request, creating it on first use.

    A caller-supplied ``X-Request-ID`` (or ``X-Correlation-ID``) is reused when
    it is short and made of safe characters; otherwise a UUID4 is generated.
    Outside a request every call yields a fresh UUID4.
    """

    if not has_request_context():
        return str(uuid4())
    request_id = g.get("request_id")
    if request_id is None:
        request_id = _incoming_request_id() or str(uuid4())
        g.request_id = request_id
    return request_id


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int = "INFO", *, stream=None) -> None:
    """Install a single JSON handler on the root logger."""

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestContextFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def init_app(app: Flask) -> None:
    """Bind request ids, echo them on responses and write the access line."""

    app.logger.addFilter(RequestContextFilter())
    access_log = logging.getLogger(ACCESS_LOGGER_NAME)
    access_log.addFilter(RequestContextFilter())

    @app.before_request
    def _start_request() -> None:
        # ``g`` is shared by every request served inside an outer app context.
        for key in ("request_id", "user_id"):
            g.pop(key, None)
        ensure_request_id()
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish_request(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        started = g.get("request_started")
        if started is not None and app.config.get("ACCESS_LOG", True):
            access_log.info(
                "request.completed",
                extra={
                    "status": response.status_code,
                    "endpoint": request.endpoint,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                    "user_id": g.get("user_id"),
                },
            )
        return response


__all__ = [
    "ACCESS_LOGGER_NAME",
    "JSONFormatter",
    "RequestContextFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "redact",
]
