"""Shared fixtures: one gateway app per run, one rolled-back transaction per test.

The identity provider is always the in-process stub; tests register the
bearer strings they need through ``identity_verifier``.
"""

from __future__ import annotations

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from tests.factories import bind_session
from tokengate.api.deps import IDENTITY_VERIFIER_KEY
from tokengate.core.config import TestingConfig
from tokengate.core.extensions import db as _db
from tokengate.factory import create_app
from tokengate.services._shared.ports.identity_verifier import (
    ExternalIdentity,
    StubIdentityVerifier,
)


@pytest.fixture(scope="session")
def app():
    """Gateway app built from :class:`TestingConfig` with a stub verifier."""
    app = create_app(TestingConfig, identity_verifier=StubIdentityVerifier())
    app.logger.setLevel("WARNING")
    return app


def _use_explicit_sqlite_transactions(engine) -> None:
    """Make pysqlite emit ``BEGIN`` itself so SAVEPOINTs nest inside a real transaction.

    Without this the driver defers ``BEGIN`` to the first DML statement and
    the per-test outer transaction never exists, so application commits
    outlive the test.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    # Connections opened before the listener existed keep the driver default.
    engine.dispose()


@pytest.fixture(scope="session")
def db(app):
    """Create the schema once per run and drop it at the end."""
    with app.app_context():
        _use_explicit_sqlite_transactions(_db.engine)
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in an outer transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The session joins the outer transaction in ``create_savepoint`` mode:
    ``commit()`` releases a SAVEPOINT and ``rollback()`` returns to it, so
    application code may commit and roll back freely while the outer
    transaction discards everything at teardown.
    """
    # Outer transaction, rolled back at teardown.
    top_trans = connection.begin()

    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # Application code resolves ``db.session`` at call time.
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def app_ctx(app, session):
    """Push a fresh application context so ``g`` never leaks between tests."""
    with app.app_context() as ctx:
        yield ctx


@pytest.fixture()
def client(app, app_ctx):
    """Test client sharing the per-test app context."""
    return app.test_client()


@pytest.fixture()
def identity_verifier(app):
    """Install a fresh :class:`StubIdentityVerifier` for one test."""
    original = app.extensions[IDENTITY_VERIFIER_KEY]
    stub = StubIdentityVerifier()
    app.extensions[IDENTITY_VERIFIER_KEY] = stub
    try:
        yield stub
    finally:
        app.extensions[IDENTITY_VERIFIER_KEY] = original


@pytest.fixture()
def external_identity(identity_verifier):
    """Register the default identity behind the ``"azure-token"`` bearer."""
    identity = ExternalIdentity(
        id="azure-oid-1",
        email="ada@contoso.com",
        display_name="Ada Lovelace",
        given_name="Ada",
        surname="Lovelace",
    )
    identity_verifier.register("azure-token", identity)
    return identity


@pytest.fixture()
def login_pair(client, external_identity):
    """Log in through the API and return the token pair body."""
    resp = client.post("/api/auth/login", json={"azureToken": "azure-token"})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


@pytest.fixture()
def auth_header(login_pair):
    """Bearer header carrying the access token from :func:`login_pair`."""
    return {"Authorization": f"Bearer {login_pair['accessToken']}"}


@pytest.fixture(scope="session")
def faker():
    """Seeded Faker for reproducible fake data."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture(autouse=True)
def _factories_session(session):
    """Point every factory at this test's session."""
    bind_session(session)
    yield
