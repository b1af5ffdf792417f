"""Tests for the ``flask seed`` and ``flask tokens`` command groups."""

from __future__ import annotations

from datetime import timedelta

import click
import pytest
from sqlalchemy import select

from tests.factories.refresh_token import RefreshTokenFactory
from tokengate.cli.seed import _guard_production
from tokengate.models.base import utc_now
from tokengate.models.document import Document
from tokengate.models.refresh_token import RefreshToken
from tokengate.seeds.seed_data import DOCUMENT_FIXTURES


@pytest.fixture()
def runner(app, app_ctx):
    return app.test_cli_runner()


def test_seed_run_is_idempotent(runner, session) -> None:
    first = runner.invoke(args=["seed", "run"])
    second = runner.invoke(args=["seed", "run"])

    assert first.exit_code == 0, first.output
    assert "documents: 5 created, 0 already present" in first.output
    assert "documents: 0 created, 5 already present" in second.output
    titles = set(session.scalars(select(Document.title)))
    assert titles >= {f["title"] for f in DOCUMENT_FIXTURES}


def test_fresh_is_refused_in_production(app, app_ctx, monkeypatch) -> None:
    monkeypatch.setitem(app.config, "ENV_NAME", "production")
    monkeypatch.setitem(app.config, "TESTING", False)
    monkeypatch.setitem(app.config, "DEBUG", False)
    with pytest.raises(click.UsageError):
        _guard_production()


def test_tokens_purge_removes_only_stale_inactive_rows(runner, session) -> None:
    old = utc_now() - timedelta(days=45)
    RefreshTokenFactory(token="cli-old-revoked", created_at=old, is_revoked=True)
    RefreshTokenFactory(token="cli-fresh-revoked", is_revoked=True)
    session.commit()

    result = runner.invoke(args=["tokens", "purge", "--days", "30"])

    assert result.exit_code == 0, result.output
    assert "Purged 1 refresh token(s)" in result.output
    tokens = set(session.scalars(select(RefreshToken.token)))
    assert "cli-old-revoked" not in tokens
    assert "cli-fresh-revoked" in tokens


def test_tokens_purge_rejects_non_positive_days(runner) -> None:
    result = runner.invoke(args=["tokens", "purge", "--days", "0"])
    assert result.exit_code != 0
