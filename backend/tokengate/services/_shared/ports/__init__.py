"""
tokengate.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) that define the contracts the
session manager depends on.

Modules
-------
- :mod:`identity_verifier`:
    :class:`~.IdentityVerifier`, turning a third-party bearer token into an
    :class:`~.ExternalIdentity`.

- :mod:`token_provider`:
    :class:`~.TokenProvider`, abstraction for signing and decoding JWTs.

- :mod:`session_store`:
    :class:`~.SessionStore`, persistence of users and refresh-token rows.

Concrete adapters (Microsoft Graph, Flask-JWT-Extended, SQLAlchemy) live
under ``tokengate.infra``; the in-memory/stub doubles here back unit tests.
"""

from __future__ import annotations

from .identity_verifier import ExternalIdentity, IdentityVerifier, StubIdentityVerifier
from .session_store import (
    InMemorySessionStore,
    InMemoryUnitOfWork,
    NewRefreshToken,
    RefreshTokenRecord,
    SessionStore,
    UserRecord,
)
from .token_provider import (
    ACCESS,
    REFRESH,
    IssuedToken,
    StubTokenProvider,
    TokenDecodeError,
    TokenProvider,
    TokenSubject,
    TokenUser,
)

__all__ = [
    "ACCESS",
    "REFRESH",
    "ExternalIdentity",
    "IdentityVerifier",
    "StubIdentityVerifier",
    "InMemorySessionStore",
    "InMemoryUnitOfWork",
    "NewRefreshToken",
    "RefreshTokenRecord",
    "SessionStore",
    "UserRecord",
    "IssuedToken",
    "StubTokenProvider",
    "TokenDecodeError",
    "TokenProvider",
    "TokenSubject",
    "TokenUser",
]
