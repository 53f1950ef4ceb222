"""FastAPI application for the TeachHub/AdhyayanX auth service.

Provides:
- Password credentials and JWT access/refresh tokens
- Refresh-token rotation with server-side revocation
- Password reset by emailed one-time token
- Cookie-presence session gate for page routes

Flow:
1. POST /api/auth/signup - Create account
2. POST /api/auth/login - Get access token + refresh cookie
3. POST /api/auth/refresh - Rotate refresh cookie, get new access token
4. GET /api/users/me - Current user's profile (Bearer access token)
5. POST /api/auth/logout - Revoke session, clear cookies
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from teachhub_api.auth.gate import SessionGateMiddleware
from teachhub_api.auth.jwt import TokenCodec
from teachhub_api.auth.password import CredentialHasher
from teachhub_api.auth.routes import router as auth_router
from teachhub_api.config import Settings, load_environment
from teachhub_api.db.database import create_engine, create_session_factory, init_db
from teachhub_api.errors import register_error_handlers
from teachhub_api.logging_config import setup_logging
from teachhub_api.users.routes import router as users_router
from teachhub_mail import EmailSender

logger = logging.getLogger("teachhub-api")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# App Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, dispose the engine on shutdown."""
    await init_db(app.state.engine)
    logger.info(f"Auth service started ({app.state.settings.environment})")
    yield
    await app.state.engine.dispose()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str


def create_app(
    settings: Settings | None = None, mailer: EmailSender | None = None
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration. If not provided, loads from environment.
        mailer: Email sender. If not provided, a Resend sender is configured
            from environment.

    Returns:
        The configured FastAPI app. Shared collaborators live on
        ``app.state``.
    """
    if settings is None:
        load_environment()
        settings = Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="TeachHub Auth API",
        description="Authentication and session management for AdhyayanX",
        version="0.1.0",
        lifespan=lifespan,
    )

    engine = create_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.hasher = CredentialHasher(settings.bcrypt_rounds)
    app.state.codec = TokenCodec(settings)
    app.state.mailer = mailer or EmailSender()
    app.state.clock = utcnow

    # The gate runs inside CORS so preflight requests are answered first
    app.add_middleware(SessionGateMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(users_router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
