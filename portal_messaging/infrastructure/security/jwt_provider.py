# portal_messaging/infrastructure/security/jwt_provider.py

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt

from portal_messaging.config.settings import settings
from portal_messaging.core.exceptions import UnauthorizedError


class JwtProvider:
    """Valida (e, para ferramentas/testes, emite) os access tokens do portal."""

    def __init__(self) -> None:
        self._secret = settings.jwt_secret
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._algorithm = "HS256"

    def issue_access_token(self, *, subject: int | str, role: str | None = None, minutes: int = 0) -> str:
        now = datetime.now(tz=timezone.utc)
        ttl = minutes if minutes and minutes > 0 else settings.jwt_access_minutes

        claims = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=ttl)).timestamp()),
            "jti": uuid4().hex,
            "typ": "access",
        }
        if role:
            claims["role"] = role
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "typ"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthorizedError("Token expired.") from e
        except jwt.InvalidTokenError as e:
            raise UnauthorizedError("Invalid token.") from e

        if claims["typ"] != "access":
            raise UnauthorizedError("Invalid token.")

        try:
            claims["sub"] = int(claims["sub"])
        except (TypeError, ValueError) as e:
            raise UnauthorizedError("Invalid token subject.") from e

        return claims
