"""Authentication API routes.

Provides signup, login, refresh-token rotation, logout and the password
reset endpoints. The refresh token only ever travels in the http-only
cookie; the access token is returned in the JSON body.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from teachhub_api.auth.cookies import clear_session_cookies, set_session_cookies
from teachhub_api.auth.service import AuthService
from teachhub_api.db.database import get_db
from teachhub_api.db.store import SessionStore

logger = logging.getLogger("teachhub-auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])


# =============================================================================
# Request Models
# =============================================================================


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(CamelModel):
    """Request body for user signup."""

    email: str | None = None
    password: str | None = None
    full_name: str | None = None
    role: str | None = None
    institute_id: str | None = None


class LoginRequest(CamelModel):
    """Request body for user login."""

    email: str | None = None
    password: str | None = None


class ResetPasswordRequest(CamelModel):
    """Request body for completing a password reset."""

    email: str | None = None
    token: str | None = None
    new_password: str | None = None


# =============================================================================
# Dependencies
# =============================================================================


def get_auth_service(
    request: Request, db: AsyncSession = Depends(get_db)
) -> AuthService:
    """Build the auth service from app-wide state and a request session."""
    state = request.app.state
    return AuthService(
        store=SessionStore(db),
        hasher=state.hasher,
        codec=state.codec,
        mailer=state.mailer,
        settings=state.settings,
        clock=state.clock,
    )


# =============================================================================
# Routes
# =============================================================================


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create a new user account.

    Returns the sanitized user. Tokens are obtained with a separate login.
    """
    user = await service.signup(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        institute_id=body.institute_id,
    )
    return {"user": user.to_public()}


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    """Authenticate user and open a session.

    Sets the refresh cookie and the session-marker cookie.
    """
    result = await service.login(body.email, body.password)
    set_session_cookies(response, result.refresh_token, request.app.state.settings)
    return {"accessToken": result.access_token, "user": result.user.to_public()}


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    """Rotate the refresh cookie and return a new access token."""
    settings = request.app.state.settings
    result = await service.refresh(request.cookies.get(settings.refresh_cookie_name))
    set_session_cookies(response, result.refresh_token, settings)

    payload = {"accessToken": result.access_token}
    if result.user is not None:
        payload["user"] = result.user.to_public()
    return payload


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke the presented refresh token and clear cookies. Always succeeds."""
    settings = request.app.state.settings
    try:
        await service.logout(request.cookies.get(settings.refresh_cookie_name))
    except Exception:
        logger.exception("Logout failed; clearing cookies anyway")
        # get_db commits after the route returns
        await db.rollback()
    clear_session_cookies(response, settings)
    return {"ok": True}


@router.post("/forget-password")
async def forget_password(
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Email a reset link if the account exists.

    Always returns ``{"ok": true}`` so callers cannot probe which emails are
    registered.
    """
    try:
        body = await request.json()
        email = body.get("email") if isinstance(body, dict) else None
        if isinstance(email, str):
            await service.forgot_password(email)
    except Exception:
        logger.exception("Forgot-password request failed")
        await db.rollback()
    return {"ok": True}


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Set a new password using a reset token."""
    await service.reset_password(body.email, body.token, body.new_password)
    return {"ok": True}
