"""User profile routes."""

from fastapi import APIRouter, Depends

from teachhub_api.auth.jwt import bearer_token
from teachhub_api.auth.routes import get_auth_service
from teachhub_api.auth.service import AuthService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
async def get_me(
    token: str | None = Depends(bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    """Get current authenticated user's profile."""
    profile = await service.get_profile(token)
    return {"user": profile.to_public(include_institute=True)}
