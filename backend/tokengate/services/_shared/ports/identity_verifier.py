from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from tokengate.services._shared.errors import ExternalTokenRejected, IdentityProviderUnavailable


@dataclass(frozen=True, slots=True)
class ExternalIdentity:
    """
    Verified profile of the caller as reported by the identity provider.

    :ivar id: Stable external identifier (becomes ``User.external_id``).
    :ivar email: Best available email address.
    :ivar display_name: Human readable name.
    :ivar given_name: First name, possibly empty.
    :ivar surname: Last name, possibly empty.
    """

    id: str
    email: str
    display_name: str
    given_name: str = ""
    surname: str = ""


class IdentityVerifier(Protocol):
    """Port turning an opaque third-party bearer token into an identity."""

    def verify(self, token: str) -> ExternalIdentity:
        """
        Verify ``token`` with the identity provider.

        :raises ExternalTokenRejected: The provider refused the token.
        :raises IdentityProviderUnavailable: The provider could not be reached.
        """


class StubIdentityVerifier(IdentityVerifier):
    """Deterministic verifier used in tests and local development.

    Known tokens map to fixed identities; anything else is rejected. Setting
    ``unavailable`` simulates a provider outage.
    """

    def __init__(self, identities: Mapping[str, ExternalIdentity] | None = None) -> None:
        self._identities: dict[str, ExternalIdentity] = dict(identities or {})
        self.unavailable = False
        self.calls: list[str] = []

    def register(self, token: str, identity: ExternalIdentity) -> None:
        self._identities[token] = identity

    def verify(self, token: str) -> ExternalIdentity:
        self.calls.append(token)
        if self.unavailable:
            raise IdentityProviderUnavailable("identity provider unavailable (stub)")
        identity = self._identities.get(token)
        if identity is None:
            raise ExternalTokenRejected(401)
        return identity
