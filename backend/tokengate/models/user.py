"""User model: a local account bound to one external identity."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from tokengate.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin, utc_now

if TYPE_CHECKING:
    from .refresh_token import RefreshToken


class User(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Local account created on the first login of an external identity.

    Fields
    ------
    external_id : str
        Stable identifier returned by the identity provider. Unique.
    email : str
        Profile email, refreshed on every login.
    display_name : str
        Profile display name, refreshed on every login.
    created_at : datetime
        Creation timestamp (from mixin).
    last_login_at : datetime
        Updated on every successful login.
    """

    __tablename__ = "users"
    __repr_attrs__ = ("external_id",)

    # Columns
    external_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_login_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    # Relationships
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("external_id", name="uq_users_external_id"),
        Index("ix_users_email", "email"),
    )

    # -------------------- Validators --------------------
    @validates("external_id")
    def _validate_external_id(self, key: str, value: str) -> str:
        """
        Reject blank external identifiers.

        :raises ValueError: If the value is empty or whitespace.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValueError("external_id is required.")
        return value.strip()

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """Trim the email. Case is preserved as delivered by the provider."""
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Email is required.")
        return value.strip()
