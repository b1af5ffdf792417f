"""Service base class: unit-of-work factories, clock and error translation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from tokengate.core import errors as api_errors
from tokengate.services._shared.errors import (
    DuplicateTokenError,
    InternalSessionError,
    InvalidExternalTokenError,
    InvalidOrExpiredRefreshTokenError,
    InvalidRefreshTokenError,
    NotFoundError,
    RateLimitedError,
    ServiceError,
    UnauthenticatedError,
)

UowFactory = Callable[[], Any]


@dataclass(slots=True)
class ServiceContext:
    """
    Request-scoped data handed to a service.

    :param actor_id: Id of the authenticated user, if any.
    :param request_id: Correlation id echoed in logs.
    """

    actor_id: int | None = None
    request_id: str | None = None


def _default_rw_uow():
    from tokengate.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

    return SQLAlchemyUnitOfWork()


def _default_ro_uow():
    from tokengate.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork

    return SQLAlchemyReadOnlyUnitOfWork()


def _unauthorized(code: str) -> Callable[[ServiceError], api_errors.APIError]:
    return lambda exc: api_errors.Unauthorized(str(exc), code=code)


# First matching entry wins; order subclasses before their bases.
_TRANSLATIONS: tuple[tuple[type[ServiceError], Callable[[Any], api_errors.APIError]], ...] = (
    (InvalidExternalTokenError, _unauthorized("invalid_external_token")),
    (InvalidOrExpiredRefreshTokenError, _unauthorized("invalid_or_expired_refresh_token")),
    (InvalidRefreshTokenError, _unauthorized("invalid_refresh_token")),
    (UnauthenticatedError, _unauthorized("unauthenticated")),
    (RateLimitedError, lambda exc: api_errors.TooManyRequests(exc.message, retry_after=exc.retry_after)),
    (DuplicateTokenError, lambda exc: api_errors.InternalError()),
    (InternalSessionError, lambda exc: api_errors.InternalError()),
    (NotFoundError, lambda exc: api_errors.NotFound(str(exc))),
    (ServiceError, lambda exc: api_errors.APIError(str(exc))),
)


def translate_service_error(exc: Exception) -> Exception:
    """API error for ``exc``; exceptions that are not service errors come back unchanged."""
    for err_type, build in _TRANSLATIONS:
        if isinstance(exc, err_type):
            return build(exc)
    return exc


class BaseService:
    """
    Base class for application services.

    Services orchestrate repositories inside a unit of work and never touch
    the global session or Flask request state directly. The unit-of-work
    factories default to the SQLAlchemy implementations; tests pass
    in-memory ones.
    """

    def __init__(
        self,
        *,
        ctx: ServiceContext | None = None,
        uow_factory: UowFactory | None = None,
        ro_uow_factory: UowFactory | None = None,
    ) -> None:
        """
        :param ctx: Request-scoped context.
        :param uow_factory: Builds read-write units of work.
        :param ro_uow_factory: Builds read-only units of work; falls back to
            ``uow_factory`` when only that one is given.
        """
        self.ctx = ctx or ServiceContext()
        self._rw_factory: UowFactory = uow_factory or _default_rw_uow
        self._ro_factory: UowFactory = ro_uow_factory or uow_factory or _default_ro_uow

    def rw_uow(self):
        return self._rw_factory()

    def ro_uow(self):
        return self._ro_factory()

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map a service error onto the API error the client will see.

        Credential failures become 401 with a distinguishing ``code``, rate
        limiting becomes 429 with ``Retry-After``, store failures become a
        generic 500, and any other :class:`ServiceError` becomes 400.
        Exceptions that are not service errors are returned unchanged.
        """
        return translate_service_error(exc)
