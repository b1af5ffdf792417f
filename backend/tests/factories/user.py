"""Factory Boy definition for :class:`tokengate.models.user.User`."""

from __future__ import annotations

import factory

from tests.factories import BaseFactory
from tokengate.models.base import utc_now
from tokengate.models.user import User


class UserFactory(BaseFactory):
    """Build persisted users bound to a unique external identity."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    external_id = factory.Sequence(lambda n: f"azure-oid-{n:04d}")
    email = factory.Sequence(lambda n: f"user{n}@contoso.com")
    display_name = factory.Sequence(lambda n: f"User {n}")
    created_at = factory.LazyFunction(utc_now)
    last_login_at = factory.LazyAttribute(lambda o: o.created_at)
