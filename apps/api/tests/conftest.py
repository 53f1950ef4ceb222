"""Shared fixtures for the auth service tests."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from teachhub_api.auth.jwt import TokenCodec
from teachhub_api.auth.password import CredentialHasher
from teachhub_api.auth.service import AuthService
from teachhub_api.config import Settings
from teachhub_api.db.database import create_engine, create_session_factory, init_db
from teachhub_api.db.store import SessionStore
from teachhub_api.main import create_app

# =============================================================================
# Test Doubles
# =============================================================================


class FakeMailer:
    """Captures password reset emails instead of sending them."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def send_password_reset(self, to: str, reset_url: str) -> bool:
        self.sent.append((to, reset_url))
        return True

    def last_token(self) -> str:
        _, url = self.sent[-1]
        return parse_qs(urlparse(url).query)["token"][0]


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings backed by a per-test SQLite file."""
    return Settings(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
        bcrypt_rounds=4,
    )


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.now(timezone.utc))


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture
def codec(settings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture
async def session_factory(settings):
    """Session factory over a freshly created schema."""
    engine = create_engine(settings.database_url)
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session) -> SessionStore:
    return SessionStore(db_session)


@pytest.fixture
def service(store, hasher, codec, mailer, settings, clock) -> AuthService:
    return AuthService(store, hasher, codec, mailer, settings, clock=clock)


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, mailer=mailer)


@pytest.fixture
def client(app):
    """Create a test client. Entering it runs the lifespan (creates tables)."""
    with TestClient(app) as client:
        yield client
