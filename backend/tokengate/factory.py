"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from tokengate.core.config import BaseConfig, apply_jwt_settings, get_config
from tokengate.core.logger import configure_logging, init_app as init_logging
from tokengate.services._shared.ports.identity_verifier import IdentityVerifier


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    identity_verifier: IdentityVerifier | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    ``identity_verifier`` replaces the Microsoft Graph verifier; tests pass a
    :class:`~tokengate.services._shared.ports.identity_verifier.StubIdentityVerifier`.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    apply_jwt_settings(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from tokengate.core import proxy

    proxy.init_app(app)

    from tokengate.core import extensions

    extensions.init_app(app)

    from tokengate.core import security

    security.init_app(app)

    init_logging(app)

    from tokengate.core import cors

    cors.init_app(app)

    if identity_verifier is None:
        from tokengate.infra.identity.graph_identity_verifier import GraphIdentityVerifier

        identity_verifier = GraphIdentityVerifier.from_config(app.config)
    from tokengate.api.deps import IDENTITY_VERIFIER_KEY

    app.extensions[IDENTITY_VERIFIER_KEY] = identity_verifier

    from tokengate.api import init_app as init_api

    init_api(app)

    from tokengate.core import errors

    errors.init_app(app)

    from tokengate import cli as app_cli

    app_cli.init_app(app)

    return app
