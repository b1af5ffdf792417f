"""Unit tests for :mod:`tokengate.core.config`."""

from __future__ import annotations

from datetime import timedelta

import pytest

from tokengate.core.config import (
    PLACEHOLDER_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    apply_jwt_settings,
    env_bool,
    env_first,
    env_int,
    get_config,
)


def test_get_config_follows_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    assert get_config() is TestingConfig
    monkeypatch.setenv("APP_ENV", "production")
    assert get_config() is ProductionConfig
    monkeypatch.setenv("APP_ENV", "bogus")
    assert get_config() is DevelopmentConfig


def test_env_helpers_accept_dotnet_style_aliases(monkeypatch):
    monkeypatch.delenv("JWT_ISSUER", raising=False)
    monkeypatch.setenv("Jwt__Issuer", "  tokengate  ")
    monkeypatch.setenv("Jwt__AccessTokenExpireMinutes", "15")
    monkeypatch.setenv("FLAG", "Yes")

    assert env_first("JWT_ISSUER", "Jwt__Issuer") == "tokengate"
    assert env_int("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "Jwt__AccessTokenExpireMinutes", default=30) == 15
    assert env_int("UNSET_NUMBER", default=7) == 7
    assert env_bool("FLAG") is True
    assert env_bool("UNSET_FLAG", True) is True


def test_apply_jwt_settings_converts_lifetimes_and_claims():
    config = {
        "JWT_SECRET_KEY": "s3cret",
        "JWT_ACCESS_TOKEN_EXPIRE_MINUTES": 10,
        "JWT_REFRESH_TOKEN_EXPIRE_DAYS": 2,
        "JWT_ISSUER": "tokengate",
        "JWT_AUDIENCE": "spa",
    }
    apply_jwt_settings(config)

    assert config["JWT_ACCESS_TOKEN_EXPIRES"] == timedelta(minutes=10)
    assert config["JWT_REFRESH_TOKEN_EXPIRES"] == timedelta(days=2)
    assert config["JWT_ENCODE_ISSUER"] == config["JWT_DECODE_ISSUER"] == "tokengate"
    assert config["JWT_ENCODE_AUDIENCE"] == config["JWT_DECODE_AUDIENCE"] == "spa"


def test_apply_jwt_settings_requires_secret():
    with pytest.raises(RuntimeError, match="must be configured"):
        apply_jwt_settings({"JWT_SECRET_KEY": ""})


def test_production_refuses_placeholder_secret():
    with pytest.raises(RuntimeError, match="placeholder"):
        apply_jwt_settings({"ENV_NAME": "production", "JWT_SECRET_KEY": PLACEHOLDER_SECRET})
    apply_jwt_settings({"ENV_NAME": "development", "JWT_SECRET_KEY": PLACEHOLDER_SECRET})
