"""JWT token creation and validation.

Provides access tokens (short-lived) and refresh tokens (long-lived). The two
kinds are signed with independent secrets and carry a ``type`` claim, so one
is never accepted in place of the other.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from teachhub_api.config import Settings
from teachhub_api.errors import InvalidToken

ACCESS = "access"
REFRESH = "refresh"


class TokenClaims(BaseModel):
    """Verified JWT payload."""

    sub: str  # User ID
    role: str
    type: str  # "access" or "refresh"
    exp: datetime
    iat: datetime


# Security scheme for Swagger UI
security = HTTPBearer(auto_error=False)


class TokenCodec:
    """Signs and verifies access and refresh tokens for one configuration."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _encode(
        self, subject: str, role: str, token_type: str, secret: str, lifetime: timedelta
    ) -> str:
        now = datetime.now(timezone.utc)
        to_encode: dict[str, Any] = {
            "sub": str(subject),
            "role": str(role),
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
        }
        if token_type == REFRESH:
            # Two refresh tokens minted in the same second must still differ
            to_encode["jti"] = uuid4().hex
        return jwt.encode(to_encode, secret, algorithm=self.settings.jwt_algorithm)

    def _decode(self, token: str, token_type: str, secret: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token, secret, algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError as e:
            raise InvalidToken() from e

        if payload.get("type") != token_type:
            raise InvalidToken()
        sub = payload.get("sub")
        role = payload.get("role")
        if not sub or not role or "exp" not in payload or "iat" not in payload:
            raise InvalidToken()

        return TokenClaims(
            sub=sub,
            role=role,
            type=token_type,
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        )

    def sign_access(self, subject: str, role: str) -> str:
        """Create a short-lived access token.

        Args:
            subject: The user's id.
            role: The user's role name.

        Returns:
            Encoded JWT access token.
        """
        return self._encode(
            subject,
            role,
            ACCESS,
            self.settings.access_secret,
            timedelta(seconds=self.settings.access_ttl_seconds),
        )

    def verify_access(self, token: str) -> TokenClaims:
        """Decode and validate an access token.

        Raises:
            InvalidToken: Bad signature, expired, wrong type or missing claims.
        """
        return self._decode(token, ACCESS, self.settings.access_secret)

    def sign_refresh(self, subject: str, role: str) -> str:
        """Create a long-lived refresh token with a unique ``jti``."""
        return self._encode(
            subject,
            role,
            REFRESH,
            self.settings.refresh_secret,
            timedelta(seconds=self.refresh_lifetime_seconds()),
        )

    def verify_refresh(self, token: str) -> TokenClaims:
        return self._decode(token, REFRESH, self.settings.refresh_secret)

    def refresh_lifetime_seconds(self) -> int:
        return self.settings.refresh_ttl_seconds


async def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """FastAPI dependency returning the raw bearer token, if any."""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials
