"""Service configuration.

All settings are read once from the environment at process start and frozen
into a ``Settings`` instance that is passed to ``create_app``. Nothing else in
the service reads environment variables for auth behaviour.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger("teachhub-api")

DEV_ACCESS_SECRET = "dev-access-secret-change-me"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me"

_project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
)


def load_environment() -> None:
    """Load .env.local from the project root, then a default .env."""
    load_dotenv(os.path.join(_project_root, ".env.local"))
    load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or inconsistent."""

    pass


def _require_env(key: str, description: str) -> str:
    """Get required env var or raise clear error."""
    value = os.getenv(key)
    if not value:
        raise ConfigurationError(
            f"Missing required environment variable: {key}\n"
            f"Description: {description}\n"
            f"Please set this in your .env.local file.\n"
            f'Example: {key}="your-value-here"'
        )
    return value


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Immutable process-wide configuration."""

    access_secret: str
    refresh_secret: str
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./teachhub.db"
    jwt_algorithm: str = "HS256"
    access_ttl_seconds: int = 900
    refresh_ttl_days: int = 30
    bcrypt_rounds: int = 12

    # Cookies
    refresh_cookie_name: str = "adx_refresh"
    session_cookie_name: str = "adx_session"

    # Password reset
    app_url: str = "http://localhost:3000"
    password_reset_path: str = "/auth/reset-password"
    password_reset_ttl_seconds: int = 3600

    # Bounded candidate windows for hash matching
    refresh_candidate_window: int = 5
    logout_candidate_window: int = 20

    # Routing
    api_prefix: str = "/api"
    auth_page_path: str = "/auth"
    home_path: str = "/"
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies are only required behind HTTPS in production."""
        return self.is_production

    @property
    def refresh_ttl_seconds(self) -> int:
        return self.refresh_ttl_days * 24 * 60 * 60

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        In production both JWT secrets are required and must differ.
        Elsewhere development secrets are substituted with a warning.
        """
        environment = os.getenv("APP_ENV", "development").strip().lower()
        if environment in ("prod", "production"):
            environment = "production"

        if environment == "production":
            access_secret = _require_env(
                "JWT_ACCESS_SECRET", "HMAC secret used to sign access tokens"
            )
            refresh_secret = _require_env(
                "JWT_REFRESH_SECRET",
                "HMAC secret used to sign refresh tokens (must differ from access)",
            )
            if access_secret == refresh_secret:
                raise ConfigurationError(
                    "JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be different"
                )
        else:
            access_secret = os.getenv("JWT_ACCESS_SECRET") or DEV_ACCESS_SECRET
            refresh_secret = os.getenv("JWT_REFRESH_SECRET") or DEV_REFRESH_SECRET
            if access_secret == DEV_ACCESS_SECRET or refresh_secret == DEV_REFRESH_SECRET:
                logger.warning("JWT secrets not set - using development defaults")

        origins = tuple(
            o.strip()
            for o in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000").split(",")
            if o.strip()
        )

        return cls(
            access_secret=access_secret,
            refresh_secret=refresh_secret,
            environment=environment,
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_ttl_seconds=_env_int("JWT_ACCESS_EXPIRES", cls.access_ttl_seconds),
            refresh_ttl_days=_env_int("JWT_REFRESH_EXPIRES_DAYS", cls.refresh_ttl_days),
            bcrypt_rounds=_env_int("BCRYPT_SALT_ROUNDS", cls.bcrypt_rounds),
            refresh_cookie_name=os.getenv(
                "REFRESH_COOKIE_NAME", cls.refresh_cookie_name
            ),
            session_cookie_name=os.getenv(
                "SESSION_COOKIE_NAME", cls.session_cookie_name
            ),
            app_url=os.getenv("APP_URL", cls.app_url).rstrip("/"),
            password_reset_path=os.getenv(
                "PASSWORD_RESET_PATH", cls.password_reset_path
            ),
            password_reset_ttl_seconds=_env_int(
                "PASSWORD_RESET_TTL_SECONDS", cls.password_reset_ttl_seconds
            ),
            refresh_candidate_window=_env_int(
                "REFRESH_CANDIDATE_WINDOW", cls.refresh_candidate_window
            ),
            logout_candidate_window=_env_int(
                "LOGOUT_CANDIDATE_WINDOW", cls.logout_candidate_window
            ),
            cors_origins=origins,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
