"""Shared plumbing for the SQLAlchemy repositories.

Repositories read and stage rows on the session they are handed. They flush
when a generated key is needed but never commit or roll back; the unit of work
owns the transaction. Ordering accepts only the public keys a repository lists
in ``sortable`` (unknown keys are skipped) and equality filters only the keys
listed in ``filterable`` (unknown keys raise ``ValueError``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from tokengate.core.extensions import db

E = TypeVar("E")

Columns = Mapping[str, InstrumentedAttribute[Any]]


def order_clauses(columns: Columns, keys: Iterable[str]) -> list[Any]:
    """Translate keys such as ``["-created_at", "title"]`` into ``ORDER BY`` terms.

    :param columns: Public key to mapped column.
    :param keys: Keys, optionally prefixed with ``-`` for descending order.
    :returns: Clauses for the known keys, in input order.
    """
    clauses: list[Any] = []
    for raw in keys:
        key = raw.strip()
        descending = key.startswith("-")
        column = columns.get(key.lstrip("-"))
        if column is not None:
            clauses.append(column.desc() if descending else column.asc())
    return clauses


class BaseRepository(Generic[E]):
    """Persistence helpers for one mapped model with an ``id`` primary key."""

    model: ClassVar[type]
    sortable: ClassVar[Columns] = {}
    filterable: ClassVar[Columns] = {}

    def __init__(self, session: Session | None = None) -> None:
        # ``None`` means the Flask-scoped session, resolved on each access.
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # -------------------------------- Queries --------------------------------

    def _where(self, stmt: Select[Any], filters: Mapping[str, Any] | None) -> Select[Any]:
        for key, value in (filters or {}).items():
            column = self.filterable.get(key)
            if column is None:
                raise ValueError(f"{self.model.__name__} cannot be filtered by {key!r}")
            stmt = stmt.where(column == value)
        return stmt

    def _ordered(self, stmt: Select[Any], keys: Iterable[str], *, newest_first: bool = False) -> Select[Any]:
        """Apply whitelisted ordering; the primary key always breaks ties."""
        clauses = order_clauses(self.sortable, keys)
        if clauses:
            stmt = stmt.order_by(*clauses)
        pk = self.model.id
        return stmt.order_by(pk.desc() if newest_first else pk.asc())

    def _all(self, stmt: Select[Any]) -> list[E]:
        return cast(list[E], list(self.session.execute(stmt).scalars()))

    def get(self, entity_id: Any) -> E | None:
        return cast(E | None, self.session.get(self.model, entity_id))

    def get_for_update(self, entity_id: Any) -> E | None:
        """Row by primary key, locked with ``FOR UPDATE`` until the transaction ends.

        SQLite has no row locks and drops the clause; its single writer
        already serializes the transaction.
        """
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def find_one(self, **filters: Any) -> E | None:
        stmt = self._where(select(self.model), filters).limit(1)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def list(
        self,
        *,
        filters: Mapping[str, Any] | None = None,
        sort: Iterable[str] = (),
        limit: int | None = None,
    ) -> list[E]:
        """Rows matching ``filters`` ordered by ``sort`` (primary key last)."""
        stmt = self._ordered(self._where(select(self.model), filters), sort)
        if limit is not None:
            stmt = stmt.limit(int(limit))
        return self._all(stmt)

    # ------------------------------- Mutations -------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()
