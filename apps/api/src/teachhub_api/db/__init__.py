"""Database module for the API.

Provides SQLAlchemy models, async database session management and the
session store.
"""

from teachhub_api.db.database import (
    Base,
    create_engine,
    create_session_factory,
    get_db,
    init_db,
)
from teachhub_api.db.models import RefreshToken, User, UserRole
from teachhub_api.db.store import SessionStore, UserProfile

__all__ = [
    "Base",
    "RefreshToken",
    "SessionStore",
    "User",
    "UserProfile",
    "UserRole",
    "create_engine",
    "create_session_factory",
    "get_db",
    "init_db",
]
