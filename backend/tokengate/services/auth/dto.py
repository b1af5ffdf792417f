# tokengate/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param external_token: Bearer token issued by the identity provider.
    :type external_token: str
    :param device_info: Client descriptor (``User-Agent``), optional.
    :type device_info: str | None
    """

    external_token: str
    device_info: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    :param device_info: Client descriptor for the new row.
    :type device_info: str | None
    """

    refresh_token: str
    device_info: str | None = None


@dataclass(frozen=True, slots=True)
class AuthenticatedIdentity:
    """Claims of an already verified access token."""

    user_id: int
    email: str
    name: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access-token lifetime in seconds.
    :param user_email: Email of the token owner.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    user_email: str


@dataclass(frozen=True, slots=True)
class ValidateOut:
    authenticated: bool
    email: str
    name: str


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Session policy.

    :param access_expires: Access token lifetime.
    :param login_window: Sliding window for the login rate limit.
    :param login_max: Issuances tolerated inside ``login_window``; the next
        login of that user is rejected.
    :param reuse_revokes_all: Revoke every active token of a user when one of
        their rotated tokens is presented again.
    """

    access_expires: timedelta = timedelta(minutes=30)
    login_window: timedelta = timedelta(seconds=60)
    login_max: int = 5
    reuse_revokes_all: bool = False

    @property
    def expires_in(self) -> int:
        return int(self.access_expires.total_seconds())

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """Build from a Flask config mapping (see :mod:`tokengate.core.config`)."""
        return cls(
            access_expires=timedelta(minutes=int(config.get("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 30))),
            login_window=timedelta(seconds=int(config.get("LOGIN_RATE_LIMIT_WINDOW_SECONDS", 60))),
            login_max=int(config.get("LOGIN_RATE_LIMIT_MAX", 5)),
            reuse_revokes_all=bool(config.get("REFRESH_REUSE_REVOKES_ALL", False)),
        )
