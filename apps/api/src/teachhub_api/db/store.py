"""Persistence operations for users and refresh-token sessions.

Every write commits on its own, so a multi-step flow (revoke then create)
is a sequence of independent round trips rather than one transaction.
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from teachhub_api.db.models import RefreshToken, User, UserRole
from teachhub_api.errors import EmailInUse


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class UserProfile(BaseModel):
    """Sanitized user projection. Never carries password or reset hashes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    full_name: str | None = None
    role: str
    institute_id: str | None = None

    def to_public(self, include_institute: bool = False) -> dict:
        exclude = None if include_institute else {"institute_id"}
        return self.model_dump(by_alias=True, exclude=exclude)


class SessionStore:
    """Thin async repository over the users and refresh_tokens tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Refresh tokens
    # =========================================================================

    async def create_refresh_token(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> RefreshToken:
        record = RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            revoked=False,
        )
        self.db.add(record)
        await self.db.commit()
        return record

    async def find_active_tokens_for_user(
        self, user_id: UUID, limit: int
    ) -> list[RefreshToken]:
        """Newest non-revoked records for one user, at most ``limit``."""
        result = await self.db.execute(
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .order_by(RefreshToken.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_active_tokens(self, limit: int) -> list[RefreshToken]:
        """Newest non-revoked records across all users, at most ``limit``."""
        result = await self.db.execute(
            select(RefreshToken)
            .where(RefreshToken.revoked.is_(False))
            .order_by(RefreshToken.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def revoke_token(self, token_id: UUID) -> None:
        record = await self.db.get(RefreshToken, token_id)
        if record is None:
            return
        record.revoked = True
        record.replaced_by_id = None
        await self.db.commit()

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_profile(
        self, user_id: UUID, include_institute: bool = False
    ) -> UserProfile | None:
        """Load the sanitized projection of a user.

        Args:
            user_id: The user's UUID.
            include_institute: Also select ``institute_id``.

        Returns:
            The profile, or None if no such user exists.
        """
        columns = [User.id, User.email, User.full_name, User.role]
        if include_institute:
            columns.append(User.institute_id)
        result = await self.db.execute(select(*columns).where(User.id == user_id))
        row = result.mappings().one_or_none()
        if row is None:
            return None
        return UserProfile(
            id=str(row["id"]),
            email=row["email"],
            full_name=row["full_name"],
            role=row["role"],
            institute_id=row.get("institute_id"),
        )

    async def create_user(
        self,
        email: str,
        password_hash: str | None,
        full_name: str | None = None,
        role: UserRole = UserRole.STUDENT,
        institute_id: str | None = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            role=role.value,
            institute_id=institute_id,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            await self.db.rollback()
            raise EmailInUse() from e
        return user

    async def set_password_reset(
        self, user: User, token_hash: str, expires_at: datetime
    ) -> None:
        user.password_reset_token_hash = token_hash
        user.password_reset_expires_at = expires_at
        await self.db.commit()

    async def complete_password_reset(self, user: User, password_hash: str) -> None:
        """Store the new password and clear the one-time reset fields."""
        user.password_hash = password_hash
        user.password_reset_token_hash = None
        user.password_reset_expires_at = None
        await self.db.commit()


def profile_from_user(user: User) -> UserProfile:
    return UserProfile(
        id=str(user.id),
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        institute_id=user.institute_id,
    )

