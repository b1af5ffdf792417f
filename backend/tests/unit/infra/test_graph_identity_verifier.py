"""Tests for the Microsoft Graph identity adapter."""

from __future__ import annotations

import pytest
import requests
import responses

from tokengate.infra.identity.graph_identity_verifier import (
    GraphIdentityVerifier,
    ProfileExtractor,
)
from tokengate.services._shared.errors import ExternalTokenRejected, IdentityProviderUnavailable

PROFILE_URL = "https://graph.example.test/v1.0/me"


@pytest.fixture()
def verifier() -> GraphIdentityVerifier:
    return GraphIdentityVerifier(profile_url=PROFILE_URL, timeout=1.0)


@responses.activate
def test_verify_maps_profile_and_sends_bearer(verifier):
    responses.get(
        PROFILE_URL,
        json={
            "id": "oid-1",
            "mail": "ada@contoso.com",
            "displayName": "Ada Lovelace",
            "givenName": "Ada",
            "surname": "Lovelace",
        },
    )

    identity = verifier.verify("graph-token")

    assert identity.id == "oid-1"
    assert identity.email == "ada@contoso.com"
    assert identity.display_name == "Ada Lovelace"
    assert identity.given_name == "Ada"
    assert identity.surname == "Lovelace"
    assert responses.calls[0].request.headers["Authorization"] == "Bearer graph-token"


@responses.activate
@pytest.mark.parametrize("status", [400, 401, 403, 500])
def test_non_success_status_rejects(verifier, status):
    responses.get(PROFILE_URL, status=status, json={"error": {"code": "InvalidAuthenticationToken"}})

    with pytest.raises(ExternalTokenRejected) as excinfo:
        verifier.verify("graph-token")
    assert excinfo.value.status_code == status
    assert len(responses.calls) == 1


@responses.activate
def test_transport_failure_is_unavailable(verifier):
    responses.get(PROFILE_URL, body=requests.ConnectionError("boom"))

    with pytest.raises(IdentityProviderUnavailable):
        verifier.verify("graph-token")


@responses.activate
@pytest.mark.parametrize("body", ["<html>oops</html>", "[1, 2]"])
def test_unparseable_profile_is_unavailable(verifier, body):
    responses.get(PROFILE_URL, body=body, content_type="application/json")

    with pytest.raises(IdentityProviderUnavailable):
        verifier.verify("graph-token")


def test_blank_token_never_calls_provider(verifier):
    with responses.RequestsMock() as rsps:
        with pytest.raises(ExternalTokenRejected):
            verifier.verify("   ")
        assert len(rsps.calls) == 0


def test_from_config_reads_flask_keys():
    built = GraphIdentityVerifier.from_config(
        {"IDENTITY_PROFILE_URL": PROFILE_URL, "IDENTITY_TIMEOUT_SECONDS": 2.5}
    )
    assert built.profile_url == PROFILE_URL
    assert built.timeout == 2.5


class TestProfileExtractor:
    def test_email_falls_back_through_upn_then_synthetic(self):
        extractor = ProfileExtractor()

        upn = extractor.extract({"id": "oid-2", "mail": None, "userPrincipalName": "u@contoso.com"})
        synthetic = extractor.extract({"id": "oid-3", "mail": "  "})

        assert upn.email == "u@contoso.com"
        assert synthetic.email == "oid-3@azure.local"
        assert synthetic.display_name == "User"
        assert synthetic.given_name == ""

    def test_missing_id_is_unavailable(self):
        with pytest.raises(IdentityProviderUnavailable):
            ProfileExtractor().extract({"mail": "x@contoso.com"})
