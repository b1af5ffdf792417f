"""Unit tests for :class:`tokengate.models.user.User`."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from tests.factories.refresh_token import RefreshTokenFactory
from tests.factories.user import UserFactory
from tokengate.models.refresh_token import RefreshToken
from tokengate.models.user import User


def test_user_persists_with_timestamps(session):
    user = UserFactory(external_id="  oid-123  ", email=" ada@contoso.com ")
    session.flush()

    fetched = session.get(User, user.id)
    assert fetched.external_id == "oid-123"
    assert fetched.email == "ada@contoso.com"
    assert fetched.created_at is not None
    assert fetched.last_login_at is not None
    assert repr(fetched) == f"<User id={user.id} external_id={user.external_id!r}>"


def test_external_id_is_unique(session):
    UserFactory(external_id="oid-dup")
    with pytest.raises(IntegrityError):
        UserFactory(external_id="oid-dup")


@pytest.mark.parametrize("field", ["external_id", "email"])
def test_blank_identity_fields_rejected(field):
    with pytest.raises(ValueError):
        User(**{field: "   "})


def test_deleting_user_cascades_refresh_tokens(session):
    row = RefreshTokenFactory()
    user = row.user
    user_id = user.id
    assert row in user.refresh_tokens

    session.delete(user)
    session.flush()

    remaining = session.query(RefreshToken).filter_by(user_id=user_id).count()
    assert remaining == 0
