"""Unit tests for :class:`tokengate.models.refresh_token.RefreshToken`."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from tests.factories.refresh_token import RefreshTokenFactory
from tests.factories.user import UserFactory
from tokengate.models.base import utc_now


def test_token_string_is_unique_across_users(session):
    RefreshTokenFactory(token="same-token")
    with pytest.raises(IntegrityError):
        RefreshTokenFactory(token="same-token", user=UserFactory())


def test_is_usable_reflects_revocation_and_expiry(session):
    now = utc_now()
    active = RefreshTokenFactory(expires_at=now + timedelta(minutes=5))
    expired = RefreshTokenFactory(expires_at=now - timedelta(seconds=1))
    revoked = RefreshTokenFactory(is_revoked=True)

    assert active.is_usable(now) is True
    assert expired.is_usable(now) is False
    assert revoked.is_usable(now) is False


def test_revoke_is_idempotent(session):
    row = RefreshTokenFactory()
    row.revoke()
    row.revoke()
    session.flush()
    assert row.is_revoked is True


def test_is_usable_on_exact_expiry_instant(session):
    now = utc_now()
    row = RefreshTokenFactory(expires_at=now)
    assert row.is_usable(now) is False


def test_repr_never_contains_the_token(session):
    row = RefreshTokenFactory(token="super-secret-refresh")
    text = repr(row)
    assert "super-secret-refresh" not in text
    assert f"user_id={row.user_id}" in text
