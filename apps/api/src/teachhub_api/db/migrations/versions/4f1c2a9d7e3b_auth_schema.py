"""auth_schema

Revision ID: 4f1c2a9d7e3b
Revises:
Create Date: 2026-10-19 10:12:41.518204

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f1c2a9d7e3b"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users and refresh_tokens."""
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        # Authentication
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255)),
        # Profile
        sa.Column("full_name", sa.String(255)),
        sa.Column("role", sa.String(32), nullable=False, server_default="STUDENT"),
        sa.Column("institute_id", sa.String(64)),
        # Password reset
        sa.Column("password_reset_token_hash", sa.String(255)),
        sa.Column("password_reset_expires_at", sa.DateTime(timezone=True)),
        # Timestamps
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_users_role", "users", ["role"])

    # Refresh tokens table
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "replaced_by_id",
            sa.Uuid,
            sa.ForeignKey("refresh_tokens.id"),
            nullable=True,
        ),
    )
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])
    op.create_index(
        "ix_refresh_tokens_revoked_created_at",
        "refresh_tokens",
        ["revoked", "created_at"],
    )


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("refresh_tokens")
    op.drop_table("users")
