"""CORS for the browser client calling ``/api``."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

# The SPA authenticates with a bearer header, never with cookies.
ALLOWED_HEADERS = ["Authorization", "Content-Type", "X-Request-ID"]
EXPOSED_HEADERS = ["X-Request-ID", "Retry-After", "WWW-Authenticate"]


def parse_origins(raw: str | None) -> list[str] | str:
    """Turn ``CORS_ORIGINS`` into the value Flask-CORS expects.

    A blank value or ``*`` anywhere in the list means any origin.
    """
    origins = [item.strip().rstrip("/") for item in (raw or "").split(",")]
    origins = [item for item in origins if item]
    if not origins or "*" in origins:
        return "*"
    return origins


def init_app(app: Flask) -> None:
    origins = parse_origins(app.config.get("CORS_ORIGINS"))
    prefix = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")
    CORS(
        app,
        resources={rf"{prefix}/*": {"origins": origins}},
        supports_credentials=origins != "*",
        allow_headers=ALLOWED_HEADERS,
        expose_headers=EXPOSED_HEADERS,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
