from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from tokengate.services._shared.errors import ServiceError

ACCESS = "access"
REFRESH = "refresh"


class TokenDecodeError(ServiceError):
    """The token is malformed, badly signed or missing required claims."""


@dataclass(frozen=True, slots=True)
class TokenUser:
    """Claims source for an issued token."""

    user_id: int
    email: str
    display_name: str
    external_id: str


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """
    Freshly signed token.

    :ivar token: Encoded JWT.
    :ivar expires_at: Value of the ``exp`` claim (aware UTC).
    """

    token: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenSubject:
    """Subject and discriminator read from a token without trusting its lifetime."""

    user_id: int
    token_type: str
    expires_at: datetime | None = None


class TokenProvider(Protocol):
    """Port for issuing and decoding signed bearer tokens."""

    def issue_access(self, user: TokenUser) -> IssuedToken: ...

    def issue_refresh(self, user: TokenUser) -> IssuedToken: ...

    def parse_subject(self, token: str) -> TokenSubject:
        """
        Extract the subject of ``token``; the signature is checked, expiry is not.

        :raises TokenDecodeError: If the token cannot be decoded.
        """

    def decode(self, token: str) -> dict[str, Any]: ...


def coerce_subject(raw: Any) -> int:
    """Convert a ``sub`` claim into a user id or raise :class:`TokenDecodeError`."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    raise TokenDecodeError("Invalid token subject.")


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests."""

    def __init__(
        self,
        *,
        access_expires: timedelta = timedelta(minutes=30),
        refresh_expires: timedelta = timedelta(days=7),
    ) -> None:
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def _mk(self, user: TokenUser, ttype: str, lifetime: timedelta) -> IssuedToken:
        self._seq += 1
        now = datetime.now(UTC)
        expires_at = now + lifetime
        token = f"{ttype}.{user.user_id}.{self._seq}"
        payload: dict[str, Any] = {
            "sub": str(user.user_id),
            "type": ttype,
            "token_type": ttype,
            "jti": f"jti-{self._seq}",
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        if ttype == ACCESS:
            payload.update(
                {"email": user.email, "name": user.display_name, "external_id": user.external_id}
            )
        self._issued[token] = payload
        return IssuedToken(token=token, expires_at=expires_at)

    def issue_access(self, user: TokenUser) -> IssuedToken:
        return self._mk(user, ACCESS, self.access_expires)

    def issue_refresh(self, user: TokenUser) -> IssuedToken:
        return self._mk(user, REFRESH, self.refresh_expires)

    def decode(self, token: str) -> dict[str, Any]:
        try:
            return self._issued[token]
        except KeyError as exc:
            raise TokenDecodeError("Unknown token.") from exc

    def parse_subject(self, token: str) -> TokenSubject:
        claims = self.decode(token)
        return TokenSubject(
            user_id=coerce_subject(claims.get("sub")),
            token_type=str(claims.get("token_type")),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
        )
