"""Microsoft Graph adapter for the :class:`IdentityVerifier` port."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import requests

from tokengate.services._shared.errors import (
    ExternalTokenRejected,
    IdentityProviderUnavailable,
)
from tokengate.services._shared.ports.identity_verifier import ExternalIdentity, IdentityVerifier

log = logging.getLogger(__name__)

DEFAULT_PROFILE_URL = "https://graph.microsoft.com/v1.0/me"
SYNTHETIC_EMAIL_DOMAIN = "azure.local"


def _first_text(payload: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True, slots=True)
class ProfileExtractor:
    """
    Map a provider profile payload to :class:`ExternalIdentity`.

    Each field is resolved from an ordered list of payload keys; the first
    non-blank string wins, otherwise the fallback applies.

    ======================  =========================================  ======================
    field                   keys (in order)                            fallback
    ======================  =========================================  ======================
    ``email``               mail, userPrincipalName, preferredUsername ``{id}@azure.local``
    ``display_name``        displayName                                ``"User"``
    ``given_name``          givenName                                  ``""``
    ``surname``             surname                                    ``""``
    ======================  =========================================  ======================
    """

    id_keys: Sequence[str] = ("id",)
    email_keys: Sequence[str] = ("mail", "userPrincipalName", "preferredUsername")
    display_name_keys: Sequence[str] = ("displayName",)
    given_name_keys: Sequence[str] = ("givenName",)
    surname_keys: Sequence[str] = ("surname",)
    default_display_name: str = "User"

    def extract(self, payload: Mapping[str, Any]) -> ExternalIdentity:
        """
        Build the identity.

        :raises IdentityProviderUnavailable: If the payload has no usable id.
        """
        external_id = _first_text(payload, self.id_keys)
        if external_id is None:
            raise IdentityProviderUnavailable("identity profile has no id")
        return ExternalIdentity(
            id=external_id,
            email=_first_text(payload, self.email_keys)
            or f"{external_id}@{SYNTHETIC_EMAIL_DOMAIN}",
            display_name=_first_text(payload, self.display_name_keys) or self.default_display_name,
            given_name=_first_text(payload, self.given_name_keys) or "",
            surname=_first_text(payload, self.surname_keys) or "",
        )


@dataclass(slots=True)
class GraphIdentityVerifier(IdentityVerifier):
    """
    Verify a Microsoft identity-platform access token by calling Graph ``/me``.

    A 2xx answer proves the token; any other status means the provider
    refused it. The call is made once, without retries.

    :param profile_url: Profile endpoint (``IDENTITY_PROFILE_URL``).
    :param timeout: Seconds before the call is abandoned.
    :param session_factory: Builds the :class:`requests.Session` used per call.
    """

    profile_url: str = DEFAULT_PROFILE_URL
    timeout: float = 5.0
    extractor: ProfileExtractor = field(default_factory=ProfileExtractor)
    session_factory: Callable[[], requests.Session] = requests.Session

    def verify(self, token: str) -> ExternalIdentity:
        if not token or not token.strip():
            raise ExternalTokenRejected(None)

        headers = {"Authorization": f"Bearer {token.strip()}", "Accept": "application/json"}
        try:
            with self.session_factory() as http:
                resp = http.get(self.profile_url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            log.warning("identity provider call failed: %s", exc.__class__.__name__)
            raise IdentityProviderUnavailable(str(exc)) from exc

        if not resp.ok:
            log.info("identity provider rejected token: status=%s", resp.status_code)
            raise ExternalTokenRejected(resp.status_code)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise IdentityProviderUnavailable("identity profile is not JSON") from exc
        if not isinstance(payload, Mapping):
            raise IdentityProviderUnavailable("identity profile is not an object")

        return self.extractor.extract(payload)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> GraphIdentityVerifier:
        """Build from Flask config keys ``IDENTITY_PROFILE_URL``/``IDENTITY_TIMEOUT_SECONDS``."""
        return cls(
            profile_url=str(config.get("IDENTITY_PROFILE_URL") or DEFAULT_PROFILE_URL),
            timeout=float(config.get("IDENTITY_TIMEOUT_SECONDS", 5)),
        )
