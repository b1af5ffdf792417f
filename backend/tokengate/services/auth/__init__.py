from tokengate.services.auth.dto import (
    AuthenticatedIdentity,
    AuthTokenConfig,
    LoginIn,
    RefreshIn,
    TokenPairOut,
    ValidateOut,
)
from tokengate.services.auth.service import SessionManager

__all__ = [
    "AuthTokenConfig",
    "AuthenticatedIdentity",
    "LoginIn",
    "RefreshIn",
    "SessionManager",
    "TokenPairOut",
    "ValidateOut",
]
