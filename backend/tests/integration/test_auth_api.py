"""Integration tests for the authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

from flask_jwt_extended import create_access_token
from freezegun import freeze_time

from tests.helpers.auth import bearer, issue_access_token, issue_refresh_token
from tokengate.api.deps import device_info, service_context
from tokengate.models.refresh_token import RefreshToken
from tokengate.models.user import User
from tokengate.services._shared.base import ServiceContext


def _assert_problem(resp, status: int, code: str) -> dict:
    assert resp.status_code == status
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["status"] == status
    assert body["code"] == code
    assert body["request_id"]
    return body


# ---------------------------------- login ---------------------------------- #
def test_login_returns_camel_case_pair(client, external_identity, session) -> None:
    resp = client.post(
        "/api/auth/login",
        json={"azureToken": "azure-token"},
        headers={"User-Agent": "Mozilla/5.0 (pytest)"},
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert set(body) == {"accessToken", "refreshToken", "expiresIn", "userEmail"}
    assert body["expiresIn"] == 1800
    assert body["userEmail"] == "ada@contoso.com"

    user = session.query(User).filter_by(external_id="azure-oid-1").one()
    row = session.query(RefreshToken).filter_by(token=body["refreshToken"]).one()
    assert row.user_id == user.id
    assert row.device_info == "Mozilla/5.0 (pytest)"


def test_login_with_rejected_external_token(client, identity_verifier) -> None:
    resp = client.post("/api/auth/login", json={"azureToken": "forged"})

    body = _assert_problem(resp, 401, "invalid_external_token")
    assert body["detail"] == "Invalid Azure token"


def test_login_when_identity_provider_down(client, identity_verifier, external_identity) -> None:
    identity_verifier.unavailable = True

    resp = client.post("/api/auth/login", json={"azureToken": "azure-token"})

    _assert_problem(resp, 401, "invalid_external_token")


def test_login_requires_azure_token(client, identity_verifier) -> None:
    resp = client.post("/api/auth/login", json={})

    body = _assert_problem(resp, 422, "validation_error")
    assert "azureToken" in body["details"]["errors"]
    assert identity_verifier.calls == []


def test_sixth_login_is_throttled_with_retry_after(client, external_identity, session) -> None:
    with freeze_time("2025-05-01 09:00:00"):
        for _ in range(5):
            assert client.post("/api/auth/login", json={"azureToken": "azure-token"}).status_code == 200
        resp = client.post("/api/auth/login", json={"azureToken": "azure-token"})

    body = _assert_problem(resp, 429, "too_many_requests")
    assert body["detail"] == "Too many login attempts. Please wait a moment."
    assert resp.headers["Retry-After"] == "60"


# --------------------------------- refresh --------------------------------- #
def test_refresh_rotates_pair(client, login_pair) -> None:
    resp = client.post("/api/auth/refresh", json={"refreshToken": login_pair["refreshToken"]})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["refreshToken"] != login_pair["refreshToken"]
    assert body["userEmail"] == login_pair["userEmail"]

    replay = client.post("/api/auth/refresh", json={"refreshToken": login_pair["refreshToken"]})
    body = _assert_problem(replay, 401, "invalid_or_expired_refresh_token")
    assert body["detail"] == "Invalid or expired refresh token"


def test_refresh_with_malformed_token(client) -> None:
    resp = client.post("/api/auth/refresh", json={"refreshToken": "not-a-jwt"})

    body = _assert_problem(resp, 401, "invalid_refresh_token")
    assert body["detail"] == "Invalid refresh token"


def test_refresh_with_signed_but_unknown_token(client, app_ctx) -> None:
    resp = client.post("/api/auth/refresh", json={"refreshToken": issue_refresh_token(99)})

    _assert_problem(resp, 401, "invalid_or_expired_refresh_token")


def test_refresh_with_access_token_is_rejected(client, login_pair) -> None:
    resp = client.post("/api/auth/refresh", json={"refreshToken": login_pair["accessToken"]})

    _assert_problem(resp, 401, "invalid_refresh_token")


# ------------------------------ logout/validate ---------------------------- #
def test_logout_revokes_refresh_tokens(client, login_pair, auth_header) -> None:
    resp = client.post("/api/auth/logout", headers=auth_header)

    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Logged out successfully"}

    again = client.post("/api/auth/logout", headers=auth_header)
    assert again.status_code == 200

    refresh = client.post("/api/auth/refresh", json={"refreshToken": login_pair["refreshToken"]})
    _assert_problem(refresh, 401, "invalid_or_expired_refresh_token")


def test_validate_echoes_access_token_identity(client, auth_header) -> None:
    resp = client.get("/api/auth/validate", headers=auth_header)

    assert resp.status_code == 200
    assert resp.get_json() == {
        "authenticated": True,
        "email": "ada@contoso.com",
        "name": "Ada Lovelace",
    }


def test_protected_endpoints_require_bearer(client) -> None:
    for method, path in (("post", "/api/auth/logout"), ("get", "/api/auth/validate")):
        resp = getattr(client, method)(path)
        body = _assert_problem(resp, 401, "unauthenticated")
        assert body["detail"] == "Missing access token"
        assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_expired_access_token_is_unauthenticated(client) -> None:
    token = issue_access_token(1, expires_delta=timedelta(seconds=-5))

    resp = client.get("/api/auth/validate", headers=bearer(token))

    body = _assert_problem(resp, 401, "unauthenticated")
    assert body["detail"] == "Access token has expired"


def test_refresh_token_cannot_be_used_as_bearer(client, login_pair) -> None:
    resp = client.get("/api/auth/validate", headers=bearer(login_pair["refreshToken"]))

    _assert_problem(resp, 401, "unauthenticated")


def test_access_jwt_claiming_refresh_type_is_unauthenticated(client) -> None:
    token = create_access_token(identity="1", additional_claims={"token_type": "refresh"})

    resp = client.get("/api/auth/validate", headers=bearer(token))

    body = _assert_problem(resp, 401, "unauthenticated")
    assert body["detail"] == "Invalid access token"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_tampered_access_token_is_unauthenticated(client, login_pair) -> None:
    header, payload, signature = login_pair["accessToken"].split(".")
    forged = ".".join([header, payload, signature[::-1]])

    resp = client.get("/api/auth/validate", headers=bearer(forged))

    body = _assert_problem(resp, 401, "unauthenticated")
    assert body["detail"] == "Invalid access token"


# ---------------------------------- deps ----------------------------------- #
def test_service_context_carries_actor_and_request_id(app) -> None:
    headers = {"X-Request-ID": "req-42", "User-Agent": "Mozilla/5.0 (pytest)"}
    with app.test_request_context("/api/auth/validate", headers=headers):
        ctx = service_context(actor_id=3)
        agent = device_info()

    assert ctx == ServiceContext(actor_id=3, request_id="req-42")
    assert agent == "Mozilla/5.0 (pytest)"
