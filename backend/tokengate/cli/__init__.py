"""Command-line interface registration for the Flask application."""

from __future__ import annotations

from flask import Flask

from .seed import seed_cli
from .tokens import tokens_cli


def init_app(app: Flask) -> None:
    """Register the ``flask seed`` and ``flask tokens`` command groups."""
    app.cli.add_command(seed_cli)
    app.cli.add_command(tokens_cli)
