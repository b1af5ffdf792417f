# tokengate/infra/sql/sqlalchemy_session_store.py
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError

from tokengate.models.base import as_utc
from tokengate.models.refresh_token import RefreshToken
from tokengate.models.user import User
from tokengate.repositories.refresh_token import RefreshTokenRepository
from tokengate.repositories.user import UserRepository
from tokengate.services._shared.errors import DuplicateTokenError, violates
from tokengate.services._shared.ports.identity_verifier import ExternalIdentity
from tokengate.services._shared.ports.session_store import (
    NewRefreshToken,
    RefreshTokenRecord,
    SessionStore,
    UserRecord,
)


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        external_id=user.external_id,
        email=user.email,
        display_name=user.display_name,
        created_at=as_utc(user.created_at),
        last_login_at=as_utc(user.last_login_at),
    )


def _token_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        token=row.token,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        is_revoked=bool(row.is_revoked),
        created_at=as_utc(row.created_at),
        device_info=row.device_info,
    )


class SQLAlchemySessionStore(SessionStore):
    """
    Session store backed by the Unit of Work's repositories.

    .. note::
       All calls share the UoW session; commit/rollback stay with the UoW.
       Single-row revocation is a conditional ``UPDATE`` so that only one of
       several concurrent callers observes the transition.
    """

    def __init__(self, *, users: UserRepository, refresh_tokens: RefreshTokenRepository) -> None:
        self.users = users
        self.refresh_tokens = refresh_tokens

    # ------------------------------ users -------------------------------

    def find_user_by_external_id(self, external_id: str) -> UserRecord | None:
        user = self.users.get_by_external_id(external_id)
        return _user_record(user) if user else None

    def get_user(self, user_id: int) -> UserRecord | None:
        user = self.users.get(user_id)
        return _user_record(user) if user else None

    def lock_user(self, user_id: int) -> UserRecord | None:
        user = self.users.get_for_update(user_id)
        return _user_record(user) if user else None

    def create_user(self, identity: ExternalIdentity, now: datetime) -> UserRecord:
        user = self.users.create(
            external_id=identity.id,
            email=identity.email,
            display_name=identity.display_name,
            now=now,
        )
        return _user_record(user)

    def touch_login(self, user_id: int, identity: ExternalIdentity, now: datetime) -> UserRecord:
        user = self.users.get(user_id)
        if user is None:
            raise LookupError(f"user {user_id} vanished during login")
        self.users.touch_login(
            user, email=identity.email, display_name=identity.display_name, now=now
        )
        return _user_record(user)

    # --------------------------- refresh tokens --------------------------

    def count_recent_logins(self, user_id: int, window: timedelta, now: datetime) -> int:
        return self.refresh_tokens.count_created_since(user_id, now - window)

    def revoke_all_active(self, user_id: int) -> int:
        return self.refresh_tokens.revoke_all_active(user_id)

    def revoke_one(self, token: str) -> bool:
        return self.refresh_tokens.revoke(token)

    def insert_refresh_token(self, record: NewRefreshToken) -> RefreshTokenRecord:
        row = RefreshToken(
            token=record.token,
            user_id=record.user_id,
            expires_at=record.expires_at,
            is_revoked=False,
            created_at=record.created_at,
            device_info=record.device_info,
        )
        session = self.refresh_tokens.session
        try:
            # SAVEPOINT keeps the outer transaction usable after a collision.
            with session.begin_nested():
                session.add(row)
        except IntegrityError as exc:
            # SQLite names the column, PostgreSQL the index.
            if violates(exc, "refresh_tokens.token") or violates(exc, "ux_refresh_tokens_token"):
                raise DuplicateTokenError() from exc
            raise
        return _token_record(row)

    def find_active_refresh_token(self, token: str, now: datetime) -> RefreshTokenRecord | None:
        row = self.refresh_tokens.find_active(token, now)
        return _token_record(row) if row else None

    def find_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        row = self.refresh_tokens.get_by_token(token)
        return _token_record(row) if row else None
