"""HTTP surface of the gateway, mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def join_prefix(base: str, relative: str) -> str:
    """``join_prefix("/api/", "/auth")`` -> ``"/api/auth"``; never empty."""
    segments = [part for part in (base.strip("/"), relative.strip("/")) if part]
    return "/" + "/".join(segments)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register each ``(blueprint, relative_prefix)`` below ``base_prefix``."""
    for blueprint, relative in entries:
        app.register_blueprint(blueprint, url_prefix=join_prefix(base_prefix, relative))


def init_app(app: Flask) -> None:
    from tokengate.api.auth import bp as auth_bp
    from tokengate.api.documents import bp as documents_bp
    from tokengate.api.health import bp as health_bp

    register_blueprint_group(
        app,
        base_prefix=app.config.get("API_BASE_PREFIX", "/api"),
        entries=[
            (health_bp, ""),
            (auth_bp, "auth"),
            (documents_bp, "documents"),
        ],
    )


__all__ = ["init_app", "join_prefix", "register_blueprint_group"]
