from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol

from tokengate.services._shared.errors import DuplicateTokenError
from tokengate.services._shared.ports.identity_verifier import ExternalIdentity


@dataclass(frozen=True, slots=True)
class UserRecord:
    """Read-model of a local user."""

    id: int
    external_id: str
    email: str
    display_name: str
    created_at: datetime
    last_login_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Read-model of a persisted refresh token.

    :ivar token: Exact signed string handed to the client.
    :ivar user_id: Owner user id.
    :ivar expires_at: Absolute expiry (UTC).
    :ivar is_revoked: Monotonic revocation flag.
    :ivar created_at: Issuance instant, used for rate limiting.
    :ivar device_info: Client descriptor, informational only.
    """

    id: int
    token: str
    user_id: int
    expires_at: datetime
    is_revoked: bool
    created_at: datetime
    device_info: str | None = None

    def is_usable(self, now: datetime) -> bool:
        return not self.is_revoked and self.expires_at > now


@dataclass(frozen=True, slots=True)
class NewRefreshToken:
    """Values for :meth:`SessionStore.insert_refresh_token`."""

    token: str
    user_id: int
    expires_at: datetime
    created_at: datetime
    device_info: str | None = None


class SessionStore(Protocol):
    """
    Persistence port for users and refresh-token rows.

    Every method runs inside the caller's Unit of Work; none of them commits.
    """

    def find_user_by_external_id(self, external_id: str) -> UserRecord | None: ...

    def get_user(self, user_id: int) -> UserRecord | None: ...

    def lock_user(self, user_id: int) -> UserRecord | None:
        """Fresh copy of the user, holding its lock until the unit of work ends."""

    def create_user(self, identity: ExternalIdentity, now: datetime) -> UserRecord:
        """Insert a user with ``created_at = last_login_at = now``."""

    def touch_login(self, user_id: int, identity: ExternalIdentity, now: datetime) -> UserRecord:
        """Copy profile fields from ``identity`` and set ``last_login_at = now``."""

    def count_recent_logins(self, user_id: int, window: timedelta, now: datetime) -> int:
        """Count refresh rows (revoked or not) created in ``[now - window, now]``."""

    def revoke_all_active(self, user_id: int) -> int:
        """Revoke every non-revoked row of the user; returns the number flipped."""

    def revoke_one(self, token: str) -> bool:
        """Revoke one row; ``True`` only when this call flipped the flag."""

    def insert_refresh_token(self, record: NewRefreshToken) -> RefreshTokenRecord:
        """
        Persist a new row.

        :raises DuplicateTokenError: If the token string already exists.
        """

    def find_active_refresh_token(self, token: str, now: datetime) -> RefreshTokenRecord | None:
        """Row for ``token`` if not revoked and ``expires_at > now``; else ``None``."""

    def find_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        """Row for ``token`` in any state."""


# --------------------------------------------------------------------------- #
# In-memory implementation (tests, local experiments)
# --------------------------------------------------------------------------- #


class InMemorySessionStore(SessionStore):
    """
    Dict-backed session store.

    .. note::
       Not thread-safe on its own; :class:`InMemoryUnitOfWork` holds
       :attr:`lock` for the whole unit of work, which serializes concurrent
       logins and refreshes the way row locks do in a database.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._users: dict[int, UserRecord] = {}
        self._tokens: dict[str, RefreshTokenRecord] = {}
        self._user_seq = 0
        self._token_seq = 0

    # ------------------------- snapshot support -------------------------

    def snapshot(self) -> tuple:
        return (
            copy.copy(self._users),
            copy.copy(self._tokens),
            self._user_seq,
            self._token_seq,
        )

    def restore(self, state: tuple) -> None:
        self._users, self._tokens, self._user_seq, self._token_seq = state

    # ------------------------------ users -------------------------------

    def find_user_by_external_id(self, external_id: str) -> UserRecord | None:
        for user in self._users.values():
            if user.external_id == external_id:
                return user
        return None

    def get_user(self, user_id: int) -> UserRecord | None:
        return self._users.get(user_id)

    def lock_user(self, user_id: int) -> UserRecord | None:
        # The unit of work already holds ``lock``.
        return self._users.get(user_id)

    def create_user(self, identity: ExternalIdentity, now: datetime) -> UserRecord:
        if self.find_user_by_external_id(identity.id) is not None:
            raise ValueError(f"external_id already registered: {identity.id}")
        self._user_seq += 1
        user = UserRecord(
            id=self._user_seq,
            external_id=identity.id,
            email=identity.email,
            display_name=identity.display_name,
            created_at=now,
            last_login_at=now,
        )
        self._users[user.id] = user
        return user

    def touch_login(self, user_id: int, identity: ExternalIdentity, now: datetime) -> UserRecord:
        user = replace(
            self._users[user_id],
            email=identity.email,
            display_name=identity.display_name,
            last_login_at=now,
        )
        self._users[user_id] = user
        return user

    # --------------------------- refresh tokens --------------------------

    def count_recent_logins(self, user_id: int, window: timedelta, now: datetime) -> int:
        since = now - window
        return sum(
            1 for t in self._tokens.values() if t.user_id == user_id and t.created_at >= since
        )

    def revoke_all_active(self, user_id: int) -> int:
        flipped = 0
        for key, rec in list(self._tokens.items()):
            if rec.user_id == user_id and not rec.is_revoked:
                self._tokens[key] = replace(rec, is_revoked=True)
                flipped += 1
        return flipped

    def revoke_one(self, token: str) -> bool:
        rec = self._tokens.get(token)
        if rec is None or rec.is_revoked:
            return False
        self._tokens[token] = replace(rec, is_revoked=True)
        return True

    def insert_refresh_token(self, record: NewRefreshToken) -> RefreshTokenRecord:
        if record.token in self._tokens:
            raise DuplicateTokenError()
        self._token_seq += 1
        rec = RefreshTokenRecord(
            id=self._token_seq,
            token=record.token,
            user_id=record.user_id,
            expires_at=record.expires_at,
            is_revoked=False,
            created_at=record.created_at,
            device_info=record.device_info,
        )
        self._tokens[rec.token] = rec
        return rec

    def find_active_refresh_token(self, token: str, now: datetime) -> RefreshTokenRecord | None:
        rec = self._tokens.get(token)
        if rec is None or not rec.is_usable(now):
            return None
        return rec

    def find_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        return self._tokens.get(token)

    def tokens_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        """All rows of a user in issuance order (test helper)."""
        return sorted((t for t in self._tokens.values() if t.user_id == user_id), key=lambda t: t.id)


class InMemoryUnitOfWork:
    """
    Unit of Work over :class:`InMemorySessionStore`.

    Holds the store lock for the whole block; changes made inside a block
    that raises are discarded.
    """

    def __init__(self, store: InMemorySessionStore) -> None:
        self.sessions = store
        self._snapshot: tuple | None = None
        self.commits = 0

    def __enter__(self) -> InMemoryUnitOfWork:
        self.sessions.lock.acquire()
        self._snapshot = self.sessions.snapshot()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._snapshot = None
            self.sessions.lock.release()

    def commit(self) -> None:
        self.commits += 1
        self._snapshot = self.sessions.snapshot()

    def rollback(self) -> None:
        if self._snapshot is not None:
            self.sessions.restore(self._snapshot)
