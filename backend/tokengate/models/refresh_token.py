"""Persisted refresh-token rows (one per issuance, kept after revocation)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tokengate.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin, as_utc

if TYPE_CHECKING:
    from .user import User


class RefreshToken(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Server-side record of an issued refresh token.

    Fields
    ------
    token : str
        The signed token string as handed to the client. Unique across all
        rows and all time.
    user_id : int
        Owning user. Rows are removed with their user.
    expires_at : datetime
        Absolute expiry, equal to the ``exp`` claim of the signed token.
    is_revoked : bool
        Monotonic ``False`` → ``True``; set on rotation, logout or a newer login.
    created_at : datetime
        Issuance time (from mixin), used for login rate limiting.
    device_info : str | None
        Free-text client descriptor (the request ``User-Agent``).
    """

    __tablename__ = "refresh_tokens"
    __repr_attrs__ = ("user_id", "is_revoked")

    token: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    device_info: Mapped[str | None] = mapped_column(String(512), nullable=True)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        Index("ux_refresh_tokens_token", "token", unique=True),
        Index("ix_refresh_tokens_user_id", "user_id"),
    )

    def is_usable(self, now: datetime) -> bool:
        """
        Return ``True`` when the row may still be exchanged for new tokens.

        :param now: Reference instant (aware UTC).
        :type now: datetime
        :returns: ``not is_revoked and expires_at > now``.
        :rtype: bool
        """
        return not self.is_revoked and as_utc(self.expires_at) > now

    def revoke(self) -> None:
        """Mark the row revoked. Idempotent."""
        self.is_revoked = True
