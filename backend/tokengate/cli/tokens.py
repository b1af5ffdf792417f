"""``flask tokens`` maintenance commands for the refresh-token table."""

from __future__ import annotations

import logging
from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from tokengate.models.base import utc_now
from tokengate.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token housekeeping."""


@tokens_cli.command("purge")
@click.option(
    "--days",
    type=click.IntRange(min=1),
    default=DEFAULT_RETENTION_DAYS,
    show_default=True,
    help="Keep revoked or expired rows issued within this many days.",
)
@with_appcontext
def purge_command(days: int) -> None:
    """Delete revoked and expired refresh tokens older than ``--days``."""
    now = utc_now()
    # Rows inside the login window still count towards the rate limit.
    window = timedelta(seconds=int(current_app.config.get("LOGIN_RATE_LIMIT_WINDOW_SECONDS", 60)))
    cutoff = min(now - timedelta(days=days), now - window)
    with SQLAlchemyUnitOfWork() as uow:
        removed = uow.refresh_tokens.purge_inactive(created_before=cutoff, now=now)
    LOGGER.info("tokens.purged count=%d", removed)
    click.echo(f"Purged {removed} refresh token(s) issued before {cutoff.isoformat()}.")
