"""SQLAlchemy models for users and refresh-token sessions."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teachhub_api.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, Enum):
    """Roles a user account can hold."""

    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    INSTITUTE_ADMIN = "INSTITUTE_ADMIN"
    SUPERADMIN = "SUPERADMIN"
    SUPPORT = "SUPPORT"

    @classmethod
    def parse(cls, value: str) -> "UserRole | None":
        """Return the role for ``value``, or None if it is not a known role."""
        try:
            return cls(value)
        except ValueError:
            return None


# =============================================================================
# User Model
# =============================================================================


class User(Base):
    """User account with password credentials and reset-token state."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Authentication
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255))

    # Profile
    full_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default=UserRole.STUDENT.value
    )
    institute_id: Mapped[str | None] = mapped_column(String(64))

    # Password reset (hash of a one-time token)
    password_reset_token_hash: Mapped[str | None] = mapped_column(String(255))
    password_reset_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_users_role", "role"),)

    @property
    def has_pending_reset(self) -> bool:
        return (
            self.password_reset_token_hash is not None
            and self.password_reset_expires_at is not None
        )


# =============================================================================
# Refresh Token Model
# =============================================================================


class RefreshToken(Base):
    """Server-side record of an issued refresh token.

    Only the hash of the token is stored. ``revoked`` only ever moves from
    False to True; records are never deleted by the auth flows.
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Set client-side: newest-first ordering needs sub-second resolution
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    # Weak link to the rotated successor. Written as null, never traversed.
    replaced_by_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("refresh_tokens.id"), nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_revoked_created_at", "revoked", "created_at"),
    )
