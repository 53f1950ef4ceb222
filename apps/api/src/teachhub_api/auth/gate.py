"""Cookie-presence session gate for page routes.

Only checks whether the refresh cookie exists. Real authorization
happens when an access token is verified.
"""

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from teachhub_api.config import Settings

BYPASS_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json", "/_next")
BYPASS_PATHS = ("/favicon.ico",)


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def _is_static_asset(path: str) -> bool:
    return "." in path.rsplit("/", 1)[-1]


def gate_redirect(path: str, has_session_cookie: bool, settings: Settings) -> str | None:
    """Decide whether a request must be redirected.

    Args:
        path: The request path.
        has_session_cookie: Whether the refresh cookie is present.
        settings: Supplies the API prefix, auth page and home paths.

    Returns:
        The redirect target, or None to let the request through.
    """
    if path in BYPASS_PATHS or _is_static_asset(path):
        return None
    if _under(path, settings.api_prefix):
        return None
    if any(_under(path, prefix) for prefix in BYPASS_PREFIXES):
        return None

    on_auth_page = _under(path, settings.auth_page_path)
    if has_session_cookie and on_auth_page:
        return settings.home_path
    if not has_session_cookie and not on_auth_page:
        return settings.auth_page_path
    return None


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Redirects page requests based on the refresh cookie."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        has_cookie = bool(request.cookies.get(self.settings.refresh_cookie_name))
        target = gate_redirect(request.url.path, has_cookie, self.settings)
        if target is not None:
            return RedirectResponse(url=target, status_code=307)
        return await call_next(request)
