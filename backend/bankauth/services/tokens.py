"""
Session token issuance.

Tokens are signed JWTs carrying the username as subject. The expiry is
read back from the token itself, so it can be looked up by anyone holding
the signing key.
"""

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from bankauth.core.config import settings
from bankauth.core.exceptions import InvalidTokenError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JwtTokenIssuer:
    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expires_delta = timedelta(
            minutes=expire_minutes if expire_minutes is not None else settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )
        self._clock = clock

    def generate_token(self, username: str) -> str:
        if not username:
            raise ValueError("Username is required to issue a token")

        issued_at = self._clock()
        claims = {
            "sub": username,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expires_delta).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def _decode(self, token: str, verify_exp: bool = True) -> dict:
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": verify_exp},
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("expired") from e
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

    def validate_token(self, token: str) -> bool:
        """Return True for a correctly signed, unexpired token."""
        if not token:
            return False
        try:
            self._decode(token)
        except InvalidTokenError:
            return False
        return True

    def get_username_from_token(self, token: str) -> str:
        payload = self._decode(token)
        username = payload.get("sub")
        if not username:
            raise InvalidTokenError("missing subject")
        return username

    def get_token_expiry(self, token: str) -> datetime:
        """
        Read the expiry of a token.

        The signature is checked but an already expired token still reports
        its expiry.
        """
        payload = self._decode(token, verify_exp=False)
        exp = payload.get("exp")
        if exp is None:
            raise InvalidTokenError("missing expiry")
        return datetime.fromtimestamp(exp, tz=timezone.utc)
