"""factory_boy base class persisting into the per-test session."""

from __future__ import annotations

import factory

_bound: dict[str, object] = {}


def bind_session(session) -> None:
    """Route every factory to ``session`` (called by an autouse fixture)."""
    _bound["session"] = session


def current_session():
    try:
        return _bound["session"]
    except KeyError:
        raise RuntimeError("No session bound for factories; use the 'session' fixture.") from None


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flushes (never commits) so rows vanish with the test transaction."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "flush"
