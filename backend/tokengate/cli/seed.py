"""``flask seed`` commands loading the sample document catalogue."""

from __future__ import annotations

import logging
from collections.abc import Callable

import click
from flask import current_app
from flask.cli import with_appcontext

from tokengate.core.extensions import db
from tokengate.seeds import seed_data

LOGGER = logging.getLogger(__name__)

Summary = dict[str, dict[str, int]]


def _render(summary: Summary) -> None:
    if not summary:
        click.echo("Nothing to seed.")
        return
    for table, counters in sorted(summary.items()):
        click.echo(
            f"{table}: {counters.get('created', 0)} created, "
            f"{counters.get('existing', 0)} already present"
        )


def _guard_production() -> None:
    config = current_app.config
    if config.get("DEBUG") or config.get("TESTING"):
        return
    if str(config.get("ENV_NAME", "production")).lower() == "production":
        raise click.UsageError("Refusing to rebuild the schema of a production database.")


def _seed(action: Callable[[], Summary], *, label: str) -> None:
    try:
        summary = action()
    except Exception as exc:  # pragma: no cover - CLI safeguard
        db.session.rollback()
        LOGGER.exception("seed.failed")
        raise click.ClickException(f"{label} failed: {exc}") from exc
    _render(summary)


@click.group("seed")
@click.option("--verbose", is_flag=True, help="Log every inserted document.")
@click.pass_context
def seed_cli(ctx: click.Context, verbose: bool) -> None:
    """Load the sample documents."""
    ctx.obj = {"verbose": verbose}
    if verbose:
        logging.getLogger(seed_data.__name__).setLevel(logging.DEBUG)


@seed_cli.command("run")
@click.pass_obj
@with_appcontext
def run_command(obj: dict) -> None:
    """Insert missing sample documents; existing titles are left untouched."""
    _seed(lambda: seed_data.run_all(db, verbose=obj["verbose"]), label="Seeding")


@seed_cli.command("fresh")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
@with_appcontext
def fresh_command(obj: dict, yes: bool) -> None:
    """Recreate every table, then seed. Users and sessions are lost."""
    _guard_production()
    if not yes:
        click.confirm("Drop and recreate users, refresh_tokens and documents?", abort=True)

    def rebuild() -> Summary:
        db.session.remove()
        db.drop_all()
        db.create_all()
        LOGGER.info("seed.schema_rebuilt")
        return seed_data.run_all(db, verbose=obj["verbose"])

    _seed(rebuild, label="Fresh seed")
