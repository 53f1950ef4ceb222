"""User profile endpoints."""

from teachhub_api.users.routes import router as users_router

__all__ = ["users_router"]
