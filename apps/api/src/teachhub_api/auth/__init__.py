"""Authentication module.

Provides credential hashing, JWT tokens, the auth flows and routes, and the
cookie-presence session gate.
"""

from teachhub_api.auth.gate import SessionGateMiddleware, gate_redirect
from teachhub_api.auth.jwt import TokenClaims, TokenCodec
from teachhub_api.auth.password import CredentialHasher
from teachhub_api.auth.routes import router as auth_router
from teachhub_api.auth.service import AuthService, LoginResult

__all__ = [
    "AuthService",
    "CredentialHasher",
    "LoginResult",
    "SessionGateMiddleware",
    "TokenClaims",
    "TokenCodec",
    "auth_router",
    "gate_redirect",
]
