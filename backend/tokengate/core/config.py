"""Gateway settings: one class per environment, values read from env vars."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Selects the settings class: development, testing or production.
ENV_VAR: Final[str] = "APP_ENV"

# Development-only signing secret; production refuses to boot with it.
PLACEHOLDER_SECRET: Final[str] = "CHANGE_ME_JWT"

# Load .env in development (no-op when the file is absent)
load_dotenv()


TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})


def env_bool(name: str, default: bool = False) -> bool:
    """``True`` when ``name`` holds one of :data:`TRUTHY` (any case); ``default`` if unset."""
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in TRUTHY


def env_first(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty value among several environment variables.

    Lets deployments keep the ``Jwt__SecretKey`` style keys they already use
    alongside the conventional upper-case names.
    """
    for name in names:
        val = os.getenv(name)
        if val is not None and val.strip():
            return val.strip()
    return default


def env_int(*names: str, default: int) -> int:
    """Parse an integer from the first populated environment variable."""
    raw = env_first(*names)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {names[0]} must be an integer, got {raw!r}") from exc


class BaseConfig:
    """Settings common to every environment.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Mount point of every blueprint (``/api``).
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Shared HMAC secret used by ``flask-jwt-extended`` to sign access and
        refresh tokens (``Jwt:SecretKey``).
    JWT_ISSUER, JWT_AUDIENCE: str | None
        Optional ``iss``/``aud`` values stamped on issued tokens and enforced
        on decode (``Jwt:Issuer`` / ``Jwt:Audience``).
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int
        Access-token lifetime in minutes (``Jwt:AccessTokenExpireMinutes``).
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int
        Refresh-token lifetime in days (``Jwt:RefreshTokenExpireDays``).
    LOGIN_RATE_LIMIT_WINDOW_SECONDS, LOGIN_RATE_LIMIT_MAX: int
        Sliding window and number of token issuances tolerated per existing
        user before logins are rejected with 429.
    REFRESH_REUSE_REVOKES_ALL: bool
        When ``True`` presenting an already rotated refresh token revokes every
        active refresh token of its owner.
    IDENTITY_PROFILE_URL: str
        Identity-provider endpoint returning the caller's profile.
    IDENTITY_TIMEOUT_SECONDS: float
        Timeout applied to the identity-provider call.
    SQLALCHEMY_DATABASE_URI: str
        ``DATABASE_URL``; SQLite by default, PostgreSQL in production.
    LOG_LEVEL: str
        Root logger level name.
    ACCESS_LOG: bool
        Emit one ``tokengate.access`` line per request.
    CORS_ORIGINS: str
        Comma-separated browser origins allowed to call the API.

    Notes
    -----
    Every value can be overridden through the environment; the ``Jwt__*``
    spellings are accepted next to the upper-case names.
    """

    ENV_NAME = "development"
    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = env_first("JWT_SECRET_KEY", "Jwt__SecretKey", default=PLACEHOLDER_SECRET)
    JWT_ISSUER = env_first("JWT_ISSUER", "Jwt__Issuer")
    JWT_AUDIENCE = env_first("JWT_AUDIENCE", "Jwt__Audience")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES = env_int(
        "JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "Jwt__AccessTokenExpireMinutes", default=30
    )
    JWT_REFRESH_TOKEN_EXPIRE_DAYS = env_int(
        "JWT_REFRESH_TOKEN_EXPIRE_DAYS", "Jwt__RefreshTokenExpireDays", default=7
    )
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]

    # Session policy
    LOGIN_RATE_LIMIT_WINDOW_SECONDS = env_int("LOGIN_RATE_LIMIT_WINDOW_SECONDS", default=60)
    LOGIN_RATE_LIMIT_MAX = env_int("LOGIN_RATE_LIMIT_MAX", default=5)
    REFRESH_REUSE_REVOKES_ALL = env_bool("REFRESH_REUSE_REVOKES_ALL", False)

    # External identity provider
    IDENTITY_PROFILE_URL = os.getenv("IDENTITY_PROFILE_URL", "https://graph.microsoft.com/v1.0/me")
    IDENTITY_TIMEOUT_SECONDS = float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "5"))

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    ACCESS_LOG = env_bool("ACCESS_LOG", True)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local development: debug on unless ``FLASK_DEBUG`` says otherwise."""

    ENV_NAME = "development"
    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600


class TestingConfig(BaseConfig):
    """Settings for the pytest suite.

    Notes
    -----
    - The database is in-memory SQLite unless ``TEST_DATABASE_URL`` points
      elsewhere.
    - Uses a fixed signing secret and no issuer/audience so tokens built by
      the tests decode deterministically.
    """

    ENV_NAME = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-secret-key-with-enough-entropy-0123456789"
    JWT_ISSUER = None
    JWT_AUDIENCE = None
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES = 30
    JWT_REFRESH_TOKEN_EXPIRE_DAYS = 7
    LOGIN_RATE_LIMIT_WINDOW_SECONDS = 60
    LOGIN_RATE_LIMIT_MAX = 5
    REFRESH_REUSE_REVOKES_ALL = False
    USE_PROXYFIX = False
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Production: no debug, no SQL echo.

    Notes
    -----
    Keeps debug and SQL echoing disabled; :func:`apply_jwt_settings` rejects a
    missing or placeholder signing secret.
    """

    ENV_NAME = "production"
    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Settings class named by ``APP_ENV``; :class:`DevelopmentConfig` when unset or unknown."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def apply_jwt_settings(config: dict[str, Any]) -> None:
    """Translate the ``Jwt:*`` options into ``flask-jwt-extended`` settings.

    Parameters
    ----------
    config: dict[str, Any]
        Flask config mapping, mutated in place.

    Raises
    ------
    RuntimeError
        When the signing secret is missing, or is the development placeholder
        while running in production.
    """
    secret = config.get("JWT_SECRET_KEY")
    if not secret:
        raise RuntimeError("JWT_SECRET_KEY (Jwt:SecretKey) must be configured.")
    if config.get("ENV_NAME") == "production" and secret == PLACEHOLDER_SECRET:
        raise RuntimeError("Refusing to start with the placeholder JWT secret in production.")

    config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        minutes=int(config.get("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 30))
    )
    config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(
        days=int(config.get("JWT_REFRESH_TOKEN_EXPIRE_DAYS", 7))
    )

    issuer = config.get("JWT_ISSUER")
    if issuer:
        config["JWT_ENCODE_ISSUER"] = issuer
        config["JWT_DECODE_ISSUER"] = issuer
    audience = config.get("JWT_AUDIENCE")
    if audience:
        config["JWT_ENCODE_AUDIENCE"] = audience
        config["JWT_DECODE_AUDIENCE"] = audience
