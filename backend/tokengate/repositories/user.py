"""User repository: lookup by external identity and profile updates."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select

from tokengate.models.user import User
from tokengate.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It never issues tokens; it only reads and writes user rows.
    """

    model = User

    sortable = {
        "email": User.email,
        "created_at": User.created_at,
        "last_login_at": User.last_login_at,
    }
    filterable = {"external_id": User.external_id, "email": User.email}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_external_id(self, external_id: str) -> User | None:
        """Fetch a user by the identity provider's stable id.

        :param external_id: External identifier (exact match).
        :type external_id: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.external_id == external_id)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Mutations ---------------------------------

    def create(
        self,
        *,
        external_id: str,
        email: str,
        display_name: str,
        now: datetime,
    ) -> User:
        """Insert a user with ``created_at = last_login_at = now``."""
        user = User(
            external_id=external_id,
            email=email,
            display_name=display_name,
            created_at=now,
            last_login_at=now,
        )
        return self.add(user)

    def touch_login(
        self,
        user: User,
        *,
        email: str,
        display_name: str,
        now: datetime,
    ) -> User:
        """Refresh profile fields and ``last_login_at`` then flush.

        Profile values are only assigned when they changed upstream so the
        flush stays minimal.
        """
        if user.email != email:
            user.email = email
        if user.display_name != display_name:
            user.display_name = display_name
        user.last_login_at = now
        self.flush()
        return user
