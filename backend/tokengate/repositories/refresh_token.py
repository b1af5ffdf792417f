"""Refresh-token repository: lookups by token string and bulk revocation."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, func, or_, select, update

from tokengate.models.refresh_token import RefreshToken
from tokengate.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Revocations are issued as conditional ``UPDATE`` statements so that the
    database, not the Python process, decides which concurrent caller flips
    a row from active to revoked.
    """

    model = RefreshToken

    sortable = {"created_at": RefreshToken.created_at, "expires_at": RefreshToken.expires_at}
    filterable = {
        "user_id": RefreshToken.user_id,
        "is_revoked": RefreshToken.is_revoked,
        "token": RefreshToken.token,
    }

    # ------------------------------ Lookups ---------------------------------

    def get_by_token(self, token: str) -> RefreshToken | None:
        """Return the row for ``token`` in any state, or ``None``."""
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def find_active(self, token: str, now: datetime, *, lock: bool = True) -> RefreshToken | None:
        """Return the row only if it is not revoked and not expired.

        :param token: Exact token string.
        :type token: str
        :param now: Reference instant; rows with ``expires_at <= now`` are skipped.
        :type now: datetime
        :param lock: Issue ``SELECT ... FOR UPDATE`` (ignored by SQLite).
        :type lock: bool
        :returns: The active row or ``None`` (absent, revoked and expired are
            not distinguished).
        :rtype: RefreshToken | None
        """
        stmt = select(RefreshToken).where(
            RefreshToken.token == token,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > now,
        )
        if lock:
            stmt = stmt.with_for_update()
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def count_created_since(self, user_id: int, since: datetime) -> int:
        """Count rows (revoked or not) issued to ``user_id`` at or after ``since``."""
        stmt = (
            select(func.count())
            .select_from(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.created_at >= since)
        )
        return int(self.session.execute(stmt).scalar_one())

    def list_for_user(self, user_id: int) -> list[RefreshToken]:
        """All rows of a user, oldest first."""
        return self.list(filters={"user_id": user_id}, sort=["created_at"])

    # ----------------------------- Revocation -------------------------------

    def revoke_all_active(self, user_id: int) -> int:
        """Revoke every non-revoked row of ``user_id``.

        :returns: Number of rows flipped (``0`` when nothing was active).
        :rtype: int
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
            .values(is_revoked=True)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)

    def revoke(self, token: str) -> bool:
        """Revoke a single row by token string.

        :returns: ``True`` only for the caller that flipped the flag; ``False``
            when the row was already revoked or does not exist.
        :rtype: bool
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.is_revoked.is_(False))
            .values(is_revoked=True)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return (result.rowcount or 0) == 1

    # ----------------------------- Maintenance ------------------------------

    def purge_inactive(self, *, created_before: datetime, now: datetime) -> int:
        """Delete revoked or expired rows issued before ``created_before``.

        Active rows are never removed regardless of age.

        :returns: Number of rows deleted.
        :rtype: int
        """
        stmt = (
            delete(RefreshToken)
            .where(
                RefreshToken.created_at < created_before,
                or_(RefreshToken.is_revoked.is_(True), RefreshToken.expires_at <= now),
            )
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)
