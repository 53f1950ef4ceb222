"""Error taxonomy and HTTP error rendering.

Every error response is a flat JSON object with a single machine-readable
code: ``{"error": "<code>"}``. Internal details are logged, never returned.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("teachhub-api")


class AuthError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, code: str | None = None, status_code: int | None = None):
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.code)


class ValidationError(AuthError):
    """Missing or malformed input."""

    code = "missing_fields"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentials(AuthError):
    """Login failed. Unknown email and wrong password are indistinguishable."""

    code = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED


class MissingToken(AuthError):
    code = "missing_token"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidToken(AuthError):
    code = "invalid_token"
    status_code = status.HTTP_401_UNAUTHORIZED


class TokenExpired(AuthError):
    code = "token_expired"
    status_code = status.HTTP_400_BAD_REQUEST


class EmailInUse(AuthError):
    code = "email_in_use"
    status_code = status.HTTP_409_CONFLICT


class NotFound(AuthError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(AuthError):
    pass


def error_response(code: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code})


def register_error_handlers(app: FastAPI) -> None:
    """Install the flat-JSON error handlers on the app."""

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return error_response(exc.code, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response("invalid_request", status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path
        )
        return error_response(
            InternalError.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
