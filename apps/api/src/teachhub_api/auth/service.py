"""Authentication flows.

Signup, login, refresh-token rotation, logout, the password-reset lifecycle
and the profile lookup behind ``/users/me``. HTTP concerns (cookies, status
codes) stay in the routes; this module raises ``AuthError`` subclasses.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol
from urllib.parse import quote
from uuid import UUID

from teachhub_api.auth.jwt import TokenCodec
from teachhub_api.auth.password import CredentialHasher
from teachhub_api.config import Settings
from teachhub_api.db.models import UserRole
from teachhub_api.db.store import SessionStore, UserProfile, as_utc, profile_from_user
from teachhub_api.errors import (
    EmailInUse,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    NotFound,
    TokenExpired,
    ValidationError,
)

logger = logging.getLogger("teachhub-auth")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class PasswordResetMailer(Protocol):
    async def send_password_reset(self, to: str, reset_url: str) -> bool: ...


@dataclass
class LoginResult:
    """Tokens and sanitized user returned by login and refresh."""

    access_token: str
    refresh_token: str
    user: UserProfile | None


class AuthService:
    """Auth flows over one request's session store."""

    def __init__(
        self,
        store: SessionStore,
        hasher: CredentialHasher,
        codec: TokenCodec,
        mailer: PasswordResetMailer,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.hasher = hasher
        self.codec = codec
        self.mailer = mailer
        self.settings = settings
        self.clock = clock

    # =========================================================================
    # Signup / Login
    # =========================================================================

    async def signup(
        self,
        email: str | None,
        password: str | None,
        full_name: str | None = None,
        role: str | None = None,
        institute_id: str | None = None,
    ) -> UserProfile:
        """Create a user account. No tokens are issued.

        Raises:
            ValidationError: Missing email/password or unknown role.
            EmailInUse: An account with this email already exists.
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError()

        user_role = UserRole.STUDENT
        if role:
            parsed = UserRole.parse(role)
            if parsed is None:
                raise ValidationError("invalid_role")
            user_role = parsed

        if await self.store.get_user_by_email(email) is not None:
            raise EmailInUse()

        user = await self.store.create_user(
            email=email,
            password_hash=self.hasher.hash(password),
            full_name=full_name,
            role=user_role,
            institute_id=institute_id,
        )
        logger.info(f"User created: {user.id} ({user.role})")
        return profile_from_user(user)

    async def login(self, email: str | None, password: str | None) -> LoginResult:
        """Verify credentials and open a new refresh-token session.

        Unknown email, missing password hash and wrong password all raise the
        same ``InvalidCredentials``.
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError()

        user = await self.store.get_user_by_email(email)
        if user is None or not user.password_hash:
            self.hasher.dummy_verify()
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials()

        access_token, refresh_token = await self._issue_session(user.id, user.role)
        logger.info(f"Login succeeded for user {user.id}")
        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            user=profile_from_user(user),
        )

    async def _issue_session(self, user_id: UUID, role: str) -> tuple[str, str]:
        """Sign a token pair and persist the refresh token's hash."""
        access_token = self.codec.sign_access(str(user_id), role)
        refresh_token = self.codec.sign_refresh(str(user_id), role)
        expires_at = self.clock() + timedelta(
            seconds=self.codec.refresh_lifetime_seconds()
        )
        await self.store.create_refresh_token(
            user_id=user_id,
            token_hash=self.hasher.hash(refresh_token),
            expires_at=expires_at,
        )
        return access_token, refresh_token

    # =========================================================================
    # Refresh / Logout
    # =========================================================================

    async def refresh(self, raw_token: str | None) -> LoginResult:
        """Rotate a refresh token.

        The presented token must verify and match one of the subject's newest
        non-revoked records. The match is revoked and a new pair is issued.

        Raises:
            MissingToken: No token presented.
            InvalidToken: Bad signature or no stored record matches.
        """
        if not raw_token:
            raise MissingToken()

        claims = self.codec.verify_refresh(raw_token)
        user_id = _parse_subject(claims.sub)

        candidates = await self.store.find_active_tokens_for_user(
            user_id, self.settings.refresh_candidate_window
        )
        match = next(
            (c for c in candidates if self.hasher.verify(raw_token, c.token_hash)),
            None,
        )
        if match is None:
            logger.info(f"Refresh rejected for user {user_id}: no stored match")
            raise InvalidToken()

        await self.store.revoke_token(match.id)
        access_token, refresh_token = await self._issue_session(user_id, claims.role)
        user = await self.store.get_profile(user_id)
        logger.info(f"Refresh token rotated for user {user_id}")
        return LoginResult(
            access_token=access_token, refresh_token=refresh_token, user=user
        )

    async def logout(self, raw_token: str | None) -> int:
        """Revoke every recent record matching the token. Returns the count."""
        if not raw_token:
            return 0

        revoked = 0
        candidates = await self.store.find_active_tokens(
            self.settings.logout_candidate_window
        )
        for candidate in candidates:
            if self.hasher.verify(raw_token, candidate.token_hash):
                await self.store.revoke_token(candidate.id)
                revoked += 1
        logger.info(f"Logout revoked {revoked} refresh token(s)")
        return revoked

    # =========================================================================
    # Password reset
    # =========================================================================

    def build_reset_url(self, raw_token: str, email: str) -> str:
        return (
            f"{self.settings.app_url}{self.settings.password_reset_path}"
            f"?token={quote(raw_token, safe='')}&email={quote(email, safe='')}"
        )

    async def forgot_password(self, email: str | None) -> None:
        """Start a reset for a known email. Silent for unknown emails."""
        email = normalize_email(email)
        if not email:
            return

        user = await self.store.get_user_by_email(email)
        if user is None:
            self.hasher.dummy_verify()
            logger.info("Password reset requested for unknown email")
            return

        raw_token = secrets.token_urlsafe(32)
        expires_at = self.clock() + timedelta(
            seconds=self.settings.password_reset_ttl_seconds
        )
        await self.store.set_password_reset(
            user, self.hasher.hash(raw_token), expires_at
        )
        sent = await self.mailer.send_password_reset(
            user.email, self.build_reset_url(raw_token, user.email)
        )
        logger.info(f"Password reset requested for user {user.id} (email sent: {sent})")

    async def reset_password(
        self, email: str | None, token: str | None, new_password: str | None
    ) -> None:
        """Consume a reset token and set a new password.

        Raises:
            ValidationError: Any field missing.
            InvalidToken: No pending reset or the token does not match (400).
            TokenExpired: The reset window has passed.
        """
        email = normalize_email(email)
        if not email or not token or not new_password:
            raise ValidationError()

        user = await self.store.get_user_by_email(email)
        if user is None or not user.has_pending_reset:
            raise InvalidToken(status_code=400)

        if self.clock() >= as_utc(user.password_reset_expires_at):
            raise TokenExpired()

        if not self.hasher.verify(token, user.password_reset_token_hash):
            raise InvalidToken(status_code=400)

        await self.store.complete_password_reset(user, self.hasher.hash(new_password))
        logger.info(f"Password reset completed for user {user.id}")

    # =========================================================================
    # Profile
    # =========================================================================

    async def get_profile(self, access_token: str | None) -> UserProfile:
        """Resolve the bearer of an access token to their profile.

        Raises:
            MissingToken: No token (code ``unauthenticated``).
            InvalidToken: Token fails verification.
            NotFound: The user no longer exists.
        """
        if not access_token:
            raise MissingToken("unauthenticated")

        claims = self.codec.verify_access(access_token)
        profile = await self.store.get_profile(
            _parse_subject(claims.sub), include_institute=True
        )
        if profile is None:
            raise NotFound()
        return profile


def _parse_subject(sub: str) -> UUID:
    try:
        return UUID(sub)
    except ValueError as e:
        raise InvalidToken() from e
