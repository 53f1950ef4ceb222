"""Seed demo accounts for local development.

Usage:
    python -m teachhub_api.seed

Creates each user only if its email is not registered yet, so it is safe to
run repeatedly.
"""

import asyncio
import logging
import os
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teachhub_api.auth.password import CredentialHasher
from teachhub_api.config import Settings, load_environment
from teachhub_api.db.database import create_engine, create_session_factory, init_db
from teachhub_api.db.models import UserRole
from teachhub_api.db.store import SessionStore
from teachhub_api.logging_config import setup_logging

logger = logging.getLogger("teachhub-api")

DEMO_INSTITUTE_ID = "skillyard-academy"


@dataclass(frozen=True)
class SeedUser:
    email: str
    role: UserRole
    full_name: str
    password: str | None = None
    institute_id: str | None = None


DEMO_USERS: list[SeedUser] = [
    SeedUser(
        "admin@skillyard.local",
        UserRole.INSTITUTE_ADMIN,
        "Skillyard Admin",
        "InstAdmin@123",
        DEMO_INSTITUTE_ID,
    ),
    SeedUser(
        "teacher1@skillyard.local",
        UserRole.TEACHER,
        "John Teacher",
        "Teacher@123",
        DEMO_INSTITUTE_ID,
    ),
    SeedUser(
        "teacher2@skillyard.local",
        UserRole.TEACHER,
        "Priya Sharma",
        "Teacher@123",
        DEMO_INSTITUTE_ID,
    ),
    SeedUser(
        "student1@skillyard.local",
        UserRole.STUDENT,
        "Amit Student",
        "Student@123",
        DEMO_INSTITUTE_ID,
    ),
    SeedUser(
        "student2@skillyard.local",
        UserRole.STUDENT,
        "Sneha Student",
        "Student@123",
        DEMO_INSTITUTE_ID,
    ),
]


def demo_users() -> list[SeedUser]:
    """The super admin (from environment) followed by ``DEMO_USERS``."""
    admin = SeedUser(
        email=os.getenv("SEED_ADMIN_EMAIL", "admin@adhyayanx.local"),
        role=UserRole.SUPERADMIN,
        full_name="Super Admin",
        password=os.getenv("SEED_ADMIN_PASS", "Admin@1234"),
    )
    return [admin, *DEMO_USERS]


async def seed_users(
    session_factory: async_sessionmaker[AsyncSession],
    hasher: CredentialHasher,
    users: list[SeedUser],
) -> list[str]:
    """Create every missing user.

    Args:
        session_factory: Session factory bound to the target database.
        hasher: Hasher for the seed passwords.
        users: Accounts to ensure.

    Returns:
        Emails of the accounts that were created.
    """
    default_password = os.getenv("DEFAULT_SEED_PASSWORD", "Password@123")
    created: list[str] = []

    async with session_factory() as session:
        store = SessionStore(session)
        for seed in users:
            email = seed.email.strip().lower()
            if await store.get_user_by_email(email) is not None:
                logger.info(f"User exists: {email}")
                continue
            await store.create_user(
                email=email,
                password_hash=hasher.hash(seed.password or default_password),
                full_name=seed.full_name,
                role=seed.role,
                institute_id=seed.institute_id,
            )
            logger.info(f"Created user: {email} ({seed.role.value})")
            created.append(email)

    return created


async def main() -> None:
    load_environment()
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    engine = create_engine(settings.database_url)
    try:
        await init_db(engine)
        created = await seed_users(
            create_session_factory(engine),
            CredentialHasher(settings.bcrypt_rounds),
            demo_users(),
        )
        logger.info(f"Seed completed: {len(created)} user(s) created")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
