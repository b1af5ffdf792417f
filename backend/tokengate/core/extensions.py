"""Extension singletons bound to the app in :func:`init_app`."""

from __future__ import annotations

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Constraint names must match the ones the migrations create.
NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
# SQLite needs batch mode for ALTER TABLE.
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy, Flask-Migrate and Flask-JWT-Extended to ``app``."""
    db.init_app(app)
    # Registers every table on ``db.metadata`` before Alembic inspects it.
    from tokengate import models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)
