"""Tests for :class:`tokengate.repositories.user.UserRepository`."""

from __future__ import annotations

from datetime import timedelta

from tests.factories.user import UserFactory
from tokengate.models.base import as_utc, utc_now
from tokengate.repositories.user import UserRepository


def test_get_by_external_id(session):
    user = UserFactory(external_id="oid-lookup")
    session.flush()
    repo = UserRepository(session=session)

    assert repo.get_by_external_id("oid-lookup").id == user.id
    assert repo.get_by_external_id("oid-other") is None


def test_create_sets_both_timestamps(session):
    now = utc_now()
    repo = UserRepository(session=session)

    user = repo.create(external_id="oid-new", email="new@contoso.com", display_name="New", now=now)

    assert user.id is not None
    assert as_utc(user.created_at) == now
    assert as_utc(user.last_login_at) == now


def test_touch_login_refreshes_profile(session):
    user = UserFactory(email="old@contoso.com", display_name="Old")
    session.flush()
    later = utc_now() + timedelta(minutes=5)
    repo = UserRepository(session=session)

    repo.touch_login(user, email="new@contoso.com", display_name="New", now=later)
    session.expire_all()

    fresh = repo.get(user.id)
    assert fresh.email == "new@contoso.com"
    assert fresh.display_name == "New"
    assert as_utc(fresh.last_login_at) == later
