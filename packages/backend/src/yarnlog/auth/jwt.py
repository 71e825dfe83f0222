"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The server
keeps no record of issued tokens; a token is valid exactly when its HS256
signature verifies under the server secret and `exp` is in the future.
There is no refresh and no revocation.

Issuer and verifier are built once from Settings (see main.create_app)
and shared read-only by every request.
"""

from datetime import datetime, timedelta, timezone

import jwt

from yarnlog.config import Settings


class TokenError(Exception):
    """Raised when a token fails verification."""


class TokenExpiredError(TokenError):
    """Signature was fine but the validity window has passed."""


class TokenIssuer:
    """Signs access tokens binding a user id."""

    def __init__(self, secret: str, algorithm: str = "HS256",
                 expires_in: timedelta = timedelta(days=7)):
        if not secret:
            raise ValueError("TokenIssuer requires a non-empty secret")
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_in=timedelta(minutes=settings.access_token_expire_minutes),
        )

    def issue(self, user_id: int) -> str:
        """Create a signed access token for `user_id`."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)


class TokenVerifier:
    """Validates access tokens and extracts the bound user id."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("TokenVerifier requires a non-empty secret")
        self._secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def verify(self, token: str) -> int:
        """Verify a token and return its user id.

        Raises TokenExpiredError when the token is past `exp`, TokenError
        for every other failure (bad signature, malformed, missing claims).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        try:
            return int(payload["sub"])
        except (TypeError, ValueError):
            raise TokenError("Invalid token: subject is not a user id")
