"""Clock helpers and column mixins shared by the gateway models."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column


def utc_now() -> datetime:
    """Return the current timezone-aware UTC instant."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Coerce a datetime read from the database to an aware UTC value.

    SQLite drops ``tzinfo`` on ``DateTime(timezone=True)`` columns; stored
    values are always UTC, so naive values are tagged rather than converted.

    :param value: Datetime loaded from a column.
    :type value: datetime
    :returns: Aware datetime in UTC.
    :rtype: datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CreatedAtMixin:
    """Provide a ``created_at`` timestamp column.

    Attributes
    ----------
    created_at:
        Timezone-aware insert timestamp. Filled from the application clock so
        rate-limit windows and token expiry share one time source.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )


class PKMixin:
    """Integer surrogate key ``id`` assigned by the database."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class ReprMixin:
    """``<Model id=1 attr=...>`` built from ``__repr_attrs__``.

    Secret columns (token strings) must never be listed.
    """

    __repr_attrs__ = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts += [f"{name}={getattr(self, name, None)!r}" for name in self.__repr_attrs__]
        return f"<{type(self).__name__} {' '.join(parts)}>"
