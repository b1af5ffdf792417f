# tokengate/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from tokengate.services._shared.base import BaseService, ServiceContext, UowFactory
from tokengate.services._shared.errors import (
    DuplicateTokenError,
    ExternalTokenRejected,
    IdentityVerificationError,
    InternalSessionError,
    InvalidExternalTokenError,
    InvalidOrExpiredRefreshTokenError,
    InvalidRefreshTokenError,
    RateLimitedError,
    SessionError,
)
from tokengate.services._shared.ports.identity_verifier import IdentityVerifier
from tokengate.services._shared.ports.session_store import (
    NewRefreshToken,
    SessionStore,
    UserRecord,
)
from tokengate.services._shared.ports.token_provider import (
    REFRESH,
    TokenDecodeError,
    TokenProvider,
    TokenSubject,
    TokenUser,
)
from tokengate.services.auth.dto import (
    AuthenticatedIdentity,
    AuthTokenConfig,
    LoginIn,
    RefreshIn,
    TokenPairOut,
    ValidateOut,
)

log = logging.getLogger(__name__)


class SessionManager(BaseService):
    """
    Session lifecycle service (login / refresh / logout / validate).

    Exchanges a verified third-party identity for a local access/refresh
    pair and keeps a single active refresh chain per user:

    * a login revokes every active refresh token of the user;
    * a refresh consumes its token (rotation) and issues exactly one successor;
    * a logout revokes every active refresh token of the user.

    Every failure leaves as a :class:`SessionError` subclass.
    """

    def __init__(
        self,
        *,
        identity_verifier: IdentityVerifier,
        token_provider: TokenProvider,
        token_cfg: AuthTokenConfig | None = None,
        uow_factory: UowFactory | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param identity_verifier: Adapter verifying third-party bearer tokens.
        :param token_provider: Adapter for issuing/decoding JWTs.
        :param token_cfg: Lifetimes and rate-limit policy.
        :param uow_factory: Builds units of work exposing ``sessions``
            (a :class:`SessionStore`).
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx, uow_factory=uow_factory)
        self.identity = identity_verifier
        self.tokens = token_provider
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Verify the external token and issue a fresh token pair.

        :param dto: Login input.
        :returns: Access/refresh token pair.
        :raises InvalidExternalTokenError: Provider refused or unreachable.
        :raises RateLimitedError: Too many issuances for this user in the window.
        :raises InternalSessionError: Store or unexpected failure.
        """
        with self._session_errors("login"):
            try:
                identity = self.identity.verify(dto.external_token)
            except ExternalTokenRejected as exc:
                log.info("login rejected: external token refused (status=%s)", exc.status_code)
                raise InvalidExternalTokenError() from exc
            except IdentityVerificationError as exc:
                log.warning("login rejected: identity provider unavailable: %s", exc)
                raise InvalidExternalTokenError() from exc

            now = self.now_utc()
            with self.rw_uow() as uow:
                store: SessionStore = uow.sessions
                user = store.find_user_by_external_id(identity.id)
                if user is not None:
                    # Concurrent logins of one user queue here until this one commits.
                    user = store.lock_user(user.id)
                    if user is None:
                        raise LookupError("user vanished during login")
                    self._enforce_login_rate(store, user, now)
                    user = store.touch_login(user.id, identity, now)
                else:
                    user = store.create_user(identity, now)
                    log.info("new user created", extra={"user_id": user.id})

                revoked = store.revoke_all_active(user.id)
                pair = self._issue_pair(store, user, dto.device_info, now)

        log.info(
            "login succeeded (revoked %d previous refresh tokens)",
            revoked,
            extra={"user_id": user.id, "device_info": dto.device_info},
        )
        return pair

    def _enforce_login_rate(self, store: SessionStore, user: UserRecord, now: datetime) -> None:
        # Only existing users have history to count; new users are never limited.
        recent = store.count_recent_logins(user.id, self.cfg.login_window, now)
        if recent >= self.cfg.login_max:
            log.warning(
                "login rate limited (%d issuances in window)", recent, extra={"user_id": user.id}
            )
            raise RateLimitedError(retry_after=int(self.cfg.login_window.total_seconds()))

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - The signature is checked, but the stored row is authoritative:
          revoked, expired and unknown tokens are all reported as
          :class:`InvalidOrExpiredRefreshTokenError`.
        - The old row is revoked with a conditional update; if two requests
          race on the same token only one of them gets a new pair.
        - With ``reuse_revokes_all`` a rotated token presented again revokes
          every active token of its owner.
        """
        with self._session_errors("refresh"):
            try:
                subject = self.tokens.parse_subject(dto.refresh_token)
            except TokenDecodeError as exc:
                log.info("refresh rejected: undecodable token")
                raise InvalidRefreshTokenError() from exc
            if subject.token_type != REFRESH:
                log.info("refresh rejected: token is not a refresh token")
                raise InvalidRefreshTokenError()

            now = self.now_utc()
            with self.rw_uow() as uow:
                pair = self._rotate(uow.sessions, dto, subject, now)

            if pair is None:
                # Reuse detected; the chain revocation above is committed.
                raise InvalidOrExpiredRefreshTokenError()

        log.info("refresh succeeded", extra={"user_id": subject.user_id})
        return pair

    def _rotate(
        self,
        store: SessionStore,
        dto: RefreshIn,
        subject: TokenSubject,
        now: datetime,
    ) -> TokenPairOut | None:
        row = store.find_active_refresh_token(dto.refresh_token, now)
        if row is None:
            if self.cfg.reuse_revokes_all and self._revoke_chain_on_reuse(store, dto, subject):
                return None
            log.info("refresh rejected: no active row", extra={"user_id": subject.user_id})
            raise InvalidOrExpiredRefreshTokenError()

        if row.user_id != subject.user_id:
            log.warning("refresh rejected: subject does not own the token")
            raise InvalidOrExpiredRefreshTokenError()

        if not store.revoke_one(row.token):
            log.info("refresh rejected: lost rotation race", extra={"user_id": row.user_id})
            raise InvalidOrExpiredRefreshTokenError()

        user = store.get_user(row.user_id)
        if user is None:
            raise InvalidOrExpiredRefreshTokenError()
        return self._issue_pair(store, user, dto.device_info, now)

    def _revoke_chain_on_reuse(
        self, store: SessionStore, dto: RefreshIn, subject: TokenSubject
    ) -> bool:
        row = store.find_refresh_token(dto.refresh_token)
        if row is None or not row.is_revoked or row.user_id != subject.user_id:
            return False
        revoked = store.revoke_all_active(row.user_id)
        log.warning(
            "refresh token reuse detected; revoked %d active tokens",
            revoked,
            extra={"user_id": row.user_id},
        )
        return True

    # ------------------------------------------------------------------ #
    # Logout / Validate
    # ------------------------------------------------------------------ #

    def logout(self, user_id: int) -> int:
        """
        Revoke every active refresh token of ``user_id``. Idempotent.

        :returns: Number of rows revoked.
        """
        with self._session_errors("logout"):
            with self.rw_uow() as uow:
                revoked = uow.sessions.revoke_all_active(user_id)
        log.info("logout (revoked %d refresh tokens)", revoked, extra={"user_id": user_id})
        return revoked

    def validate(self, identity: AuthenticatedIdentity) -> ValidateOut:
        """Echo the identity established by access-token verification."""
        return ValidateOut(authenticated=True, email=identity.email, name=identity.name)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _issue_pair(
        self,
        store: SessionStore,
        user: UserRecord,
        device_info: str | None,
        now: datetime,
    ) -> TokenPairOut:
        claims_source = TokenUser(
            user_id=user.id,
            email=user.email,
            display_name=user.display_name,
            external_id=user.external_id,
        )
        access = self.tokens.issue_access(claims_source)
        refresh = self.tokens.issue_refresh(claims_source)
        store.insert_refresh_token(
            NewRefreshToken(
                token=refresh.token,
                user_id=user.id,
                expires_at=refresh.expires_at,
                created_at=now,
                device_info=device_info,
            )
        )
        return TokenPairOut(
            access_token=access.token,
            refresh_token=refresh.token,
            expires_in=self.cfg.expires_in,
            user_email=user.email,
        )

    @contextmanager
    def _session_errors(self, operation: str) -> Iterator[None]:
        """Let :class:`SessionError` through; wrap anything else as internal."""
        try:
            yield
        except DuplicateTokenError:
            log.error("%s failed: issued refresh token collided with a stored one", operation)
            raise
        except SessionError:
            raise
        except Exception as exc:
            log.exception("%s failed unexpectedly", operation)
            raise InternalSessionError() from exc
