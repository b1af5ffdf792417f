"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`~werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    The gateway usually sits behind a TLS-terminating proxy; ``ProxyFix``
    trusts one hop of ``X-Forwarded-*`` headers so ``request.remote_addr`` and
    the scheme reflect the real client. Disabled with ``USE_PROXYFIX=False``.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore[method-assign]
