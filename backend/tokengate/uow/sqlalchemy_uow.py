"""Units of work over the Flask-scoped SQLAlchemy session."""

from __future__ import annotations

import logging
import re
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session

from tokengate.core.extensions import db
from tokengate.infra.sql.sqlalchemy_session_store import SQLAlchemySessionStore
from tokengate.repositories import (
    DocumentRepository,
    RefreshTokenRepository,
    UserRepository,
)
from tokengate.uow.base import UnitOfWork

log = logging.getLogger(__name__)

_WRITE_STATEMENT = re.compile(
    r"^\s*(insert|update|delete|merge|replace|alter|drop|truncate|create|grant|revoke)\b",
    re.IGNORECASE,
)


class ReadOnlyViolation(RuntimeError):
    """A write was attempted inside a read-only unit of work."""


class SQLAlchemyRepositoryContainer:
    """Repositories and the session store bound to one session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.refresh_tokens = RefreshTokenRepository(session=session)
        self.documents = DocumentRepository(session=session)
        self.sessions = SQLAlchemySessionStore(
            users=self.users,
            refresh_tokens=self.refresh_tokens,
        )


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """Read-write scope used by login, refresh, logout and document creation."""

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """Query-only scope used by document reads.

    Pending ORM changes are refused at flush time and INSERT/UPDATE/DELETE or
    DDL text is refused before it reaches the cursor. When the scope opened
    the transaction itself it also asks PostgreSQL or MySQL for a read-only
    transaction and always rolls it back on exit. Inside an already open
    transaction only the guards apply.
    """

    READ_ONLY_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(session=db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._owns_transaction = False
        self._hooks: list[tuple[Any, str, Any]] = []

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        target = self._target_session()
        self._owns_transaction = not target.in_transaction()
        connection = target.connection()
        self._listen(target, "before_flush", self._refuse_flush)
        self._listen(connection, "before_cursor_execute", self._refuse_write)
        if (
            self._owns_transaction
            and self.enforce_db_readonly
            and connection.dialect.name in self.READ_ONLY_DIALECTS
        ):
            try:
                connection.exec_driver_sql("SET TRANSACTION READ ONLY")
            except SQLAlchemyError as exc:
                log.warning("read-only transaction unavailable, guards only: %s", exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owns_transaction:
                self.session.rollback()
        finally:
            while self._hooks:
                event.remove(*self._hooks.pop())

    def commit(self) -> None:
        raise ReadOnlyViolation("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    def _target_session(self) -> Session:
        # Hooks go on the concrete Session, not on the scoped_session registry.
        if isinstance(self.session, scoped_session):
            return self.session()
        return self.session

    def _listen(self, target: Any, name: str, fn: Any) -> None:
        event.listen(target, name, fn)
        self._hooks.append((target, name, fn))

    @staticmethod
    def _refuse_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise ReadOnlyViolation("Read-only UnitOfWork: ORM flush blocked.")

    @staticmethod
    def _refuse_write(conn, cursor, statement, parameters, context, executemany) -> None:
        match = _WRITE_STATEMENT.match(statement or "")
        if match:
            raise ReadOnlyViolation(
                f"Read-only UnitOfWork: SQL statement blocked: {match.group(1).upper()}"
            )
