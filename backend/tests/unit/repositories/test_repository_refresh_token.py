"""Tests for :class:`tokengate.repositories.refresh_token.RefreshTokenRepository`."""

from __future__ import annotations

from datetime import timedelta

import pytest

from tests.factories.refresh_token import RefreshTokenFactory
from tests.factories.user import UserFactory
from tokengate.models.base import utc_now
from tokengate.repositories.refresh_token import RefreshTokenRepository


@pytest.fixture()
def repo(session) -> RefreshTokenRepository:
    return RefreshTokenRepository(session=session)


def test_find_active_skips_revoked_and_expired(repo, session):
    now = utc_now()
    active = RefreshTokenFactory(token="t-active")
    RefreshTokenFactory(token="t-revoked", is_revoked=True)
    RefreshTokenFactory(token="t-expired", expires_at=now - timedelta(minutes=1))
    session.flush()

    assert repo.find_active("t-active", now).id == active.id
    assert repo.find_active("t-revoked", now) is None
    assert repo.find_active("t-expired", now) is None
    assert repo.find_active("t-unknown", now) is None


def test_get_by_token_returns_any_state(repo, session):
    row = RefreshTokenFactory(token="t-old", is_revoked=True)
    session.flush()
    assert repo.get_by_token("t-old").id == row.id


def test_revoke_only_succeeds_once(repo, session):
    RefreshTokenFactory(token="t-once")
    session.flush()

    assert repo.revoke("t-once") is True
    assert repo.revoke("t-once") is False
    assert repo.revoke("t-missing") is False
    assert repo.get_by_token("t-once").is_revoked is True


def test_revoke_all_active_counts_flipped_rows(repo, session):
    user = UserFactory()
    other = UserFactory()
    RefreshTokenFactory.create_batch(2, user=user)
    RefreshTokenFactory(user=user, is_revoked=True)
    untouched = RefreshTokenFactory(user=other)
    session.flush()

    assert repo.revoke_all_active(user.id) == 2
    assert repo.revoke_all_active(user.id) == 0
    assert repo.get_by_token(untouched.token).is_revoked is False


def test_count_created_since_includes_revoked_rows(repo, session):
    now = utc_now()
    user = UserFactory()
    RefreshTokenFactory(user=user, created_at=now - timedelta(seconds=10))
    RefreshTokenFactory(user=user, created_at=now - timedelta(seconds=20), is_revoked=True)
    RefreshTokenFactory(user=user, created_at=now - timedelta(minutes=5))
    session.flush()

    assert repo.count_created_since(user.id, now - timedelta(seconds=60)) == 2


def test_list_for_user_oldest_first(repo, session):
    now = utc_now()
    user = UserFactory()
    newer = RefreshTokenFactory(user=user, created_at=now)
    older = RefreshTokenFactory(user=user, created_at=now - timedelta(hours=1))
    session.flush()

    assert [r.id for r in repo.list_for_user(user.id)] == [older.id, newer.id]


def test_purge_inactive_keeps_active_and_recent_rows(repo, session):
    now = utc_now()
    old = now - timedelta(days=40)
    user = UserFactory()
    RefreshTokenFactory(user=user, token="p-old-revoked", created_at=old, is_revoked=True)
    RefreshTokenFactory(user=user, token="p-old-expired", created_at=old, expires_at=old + timedelta(days=7))
    RefreshTokenFactory(user=user, token="p-old-active", created_at=old, expires_at=now + timedelta(days=1))
    RefreshTokenFactory(user=user, token="p-new-revoked", is_revoked=True)
    session.flush()

    removed = repo.purge_inactive(created_before=now - timedelta(days=30), now=now)

    assert removed == 2
    remaining = {row.token for row in repo.list_for_user(user.id)}
    assert remaining == {"p-old-active", "p-new-revoked"}
