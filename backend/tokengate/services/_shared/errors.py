"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or
HTTP. They are the stable contract between ports, adapters and application
services. The translation to HTTP responses (RFC 7807) is handled by
``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        Constraint or indexed column to look for (e.g. ``'ux_refresh_tokens_token'``).

    Returns
    -------
    bool
        True if the driver message mentions the constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer or BaseService translates them to APIError.
    """

    pass


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "Document").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


# --------------------------------------------------------------------------- #
# Session lifecycle (login / refresh / logout)
# --------------------------------------------------------------------------- #


class SessionError(ServiceError):
    """Base of every failure the session manager reports.

    ``message`` is safe to show to clients.
    """

    default_message = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidExternalTokenError(SessionError):
    """The identity provider rejected the bearer token or could not be reached."""

    default_message = "Invalid Azure token"


class RateLimitedError(SessionError):
    """Too many token issuances for an existing user inside the login window.

    :param retry_after: Seconds the client should wait before retrying.
    :type retry_after: int
    """

    default_message = "Too many login attempts. Please wait a moment."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = max(1, int(retry_after))


class InvalidRefreshTokenError(SessionError):
    """The refresh token could not be decoded or is not a refresh token."""

    default_message = "Invalid refresh token"


class InvalidOrExpiredRefreshTokenError(SessionError):
    """No active row matches the token (absent, revoked and expired look alike)."""

    default_message = "Invalid or expired refresh token"


class DuplicateTokenError(SessionError):
    """A freshly issued token collided with a stored one. Treated as internal."""

    default_message = "Internal server error"


class UnauthenticatedError(SessionError):
    """The caller presented no valid access token."""

    default_message = "Authentication required"


class InternalSessionError(SessionError):
    """Unexpected failure (store unreachable, bug). Details go to logs only."""

    default_message = "Internal server error"


# --------------------------------------------------------------------------- #
# Identity verification (raised by IdentityVerifier adapters)
# --------------------------------------------------------------------------- #


class IdentityVerificationError(ServiceError):
    """The external bearer token could not be turned into an identity."""


class ExternalTokenRejected(IdentityVerificationError):
    """The identity provider answered but refused the token."""

    def __init__(self, status_code: int | None = None) -> None:
        super().__init__(f"identity provider rejected token (status={status_code})")
        self.status_code = status_code


class IdentityProviderUnavailable(IdentityVerificationError):
    """Network failure, timeout or an unreadable profile response."""
