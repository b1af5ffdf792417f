# tokengate/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, cast

from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from tokengate.services._shared.ports.token_provider import (
    ACCESS,
    REFRESH,
    IssuedToken,
    TokenDecodeError,
    TokenProvider,
    TokenSubject,
    TokenUser,
    coerce_subject,
)


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    Lifetimes, secret, algorithm, issuer and audience come from the app config
    (see :func:`tokengate.core.config.apply_jwt_settings`).

    .. note::
       Requires an active Flask app context.
    """

    def _issue(self, user: TokenUser, token_type: str) -> IssuedToken:
        from flask_jwt_extended import create_access_token as _create_access
        from flask_jwt_extended import create_refresh_token as _create_refresh

        # Flask-JWT-Extended stamps a random jti, so tokens minted in the same
        # second still differ.
        claims: dict[str, Any] = {"token_type": token_type}
        if token_type == ACCESS:
            claims.update(
                {
                    "email": user.email,
                    "name": user.display_name,
                    "external_id": user.external_id,
                }
            )
            token = cast(str, _create_access(identity=str(user.user_id), additional_claims=claims))
        else:
            token = cast(str, _create_refresh(identity=str(user.user_id), additional_claims=claims))

        exp = int(self.decode(token)["exp"])
        return IssuedToken(token=token, expires_at=datetime.fromtimestamp(exp, tz=UTC))

    def issue_access(self, user: TokenUser) -> IssuedToken:
        return self._issue(user, ACCESS)

    def issue_refresh(self, user: TokenUser) -> IssuedToken:
        return self._issue(user, REFRESH)

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        try:
            return cast(dict[str, Any], decode_token(token, allow_expired=allow_expired))
        except (PyJWTError, JWTExtendedException) as exc:
            raise TokenDecodeError(str(exc)) from exc

    def parse_subject(self, token: str) -> TokenSubject:
        # Expiry is not enforced here; the stored row decides validity.
        claims = self.decode(token, allow_expired=True)
        token_type = claims.get("token_type") or claims.get("type")
        exp = claims.get("exp")
        return TokenSubject(
            user_id=coerce_subject(claims.get("sub")),
            token_type=str(token_type),
            expires_at=datetime.fromtimestamp(int(exp), tz=UTC) if exp is not None else None,
        )
