"""Refresh and session-marker cookie handling."""

from fastapi import Response

from teachhub_api.config import Settings

SESSION_MARKER_VALUE = "true"


def set_session_cookies(response: Response, refresh_token: str, settings: Settings):
    """Attach the http-only refresh cookie and the client-readable marker."""
    max_age = settings.refresh_ttl_seconds
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    # Presence-only marker read by the session gate and the browser
    response.set_cookie(
        key=settings.session_cookie_name,
        value=SESSION_MARKER_VALUE,
        max_age=max_age,
        httponly=False,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookies(response: Response, settings: Settings):
    for name in (settings.refresh_cookie_name, settings.session_cookie_name):
        response.delete_cookie(
            key=name,
            path="/",
            secure=settings.cookie_secure,
            samesite="lax",
        )
