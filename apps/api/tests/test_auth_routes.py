"""API integration tests for the /api/auth endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from teachhub_api.auth.service import AuthService
from teachhub_api.db.models import RefreshToken
from teachhub_api.db.store import SessionStore

SIGNUP = "/api/auth/signup"
LOGIN = "/api/auth/login"
REFRESH = "/api/auth/refresh"
LOGOUT = "/api/auth/logout"
FORGET = "/api/auth/forget-password"
RESET = "/api/auth/reset-password"


def make_signup_request(**overrides):
    """Create a valid signup payload."""
    payload = {
        "email": "student@example.com",
        "password": "Password@123",
        "fullName": "Amit Student",
    }
    payload.update(overrides)
    return payload


def signup_and_login(client, email="student@example.com", password="Password@123"):
    client.post(SIGNUP, json=make_signup_request(email=email, password=password))
    return client.post(LOGIN, json={"email": email, "password": password})


def post_with_refresh_cookie(client, path, token):
    """Send exactly one refresh cookie, ignoring the client's cookie jar."""
    client.cookies.clear()
    return client.post(path, headers={"Cookie": f"adx_refresh={token}"})


def set_cookie_headers(response, name):
    return [h for h in response.headers.get_list("set-cookie") if h.startswith(f"{name}=")]


# =============================================================================
# Signup
# =============================================================================


class TestSignup:
    """Tests for POST /api/auth/signup."""

    def test_signup_returns_sanitized_user(self, client):
        response = client.post(SIGNUP, json=make_signup_request())
        assert response.status_code == 201
        user = response.json()["user"]
        assert set(user) == {"id", "email", "fullName", "role"}
        assert user["email"] == "student@example.com"
        assert user["fullName"] == "Amit Student"
        assert user["role"] == "STUDENT"

    def test_signup_does_not_issue_tokens(self, client):
        response = client.post(SIGNUP, json=make_signup_request())
        assert "accessToken" not in response.json()
        assert response.headers.get_list("set-cookie") == []

    def test_signup_duplicate_email(self, client):
        client.post(SIGNUP, json=make_signup_request())
        response = client.post(SIGNUP, json=make_signup_request(email="Student@Example.com"))
        assert response.status_code == 409
        assert response.json() == {"error": "email_in_use"}

    def test_signup_missing_fields(self, client):
        response = client.post(SIGNUP, json={"email": "student@example.com"})
        assert response.status_code == 400
        assert response.json() == {"error": "missing_fields"}

    def test_signup_invalid_role(self, client):
        response = client.post(SIGNUP, json=make_signup_request(role="WIZARD"))
        assert response.status_code == 400
        assert response.json() == {"error": "invalid_role"}

    def test_signup_malformed_body(self, client):
        response = client.post(
            SIGNUP, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "invalid_request"}


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_sets_cookies_and_returns_access_token(self, client):
        response = signup_and_login(client)
        assert response.status_code == 200

        body = response.json()
        assert body["accessToken"]
        assert body["user"]["email"] == "student@example.com"
        assert "refreshToken" not in body

        refresh_cookie = set_cookie_headers(response, "adx_refresh")[0]
        assert "HttpOnly" in refresh_cookie
        assert "Path=/" in refresh_cookie
        assert "samesite=lax" in refresh_cookie.lower()
        assert f"Max-Age={30 * 24 * 60 * 60}" in refresh_cookie
        # Secure is only set in production
        assert "Secure" not in refresh_cookie

        marker_cookie = set_cookie_headers(response, "adx_session")[0]
        assert marker_cookie.startswith("adx_session=true")
        assert "HttpOnly" not in marker_cookie

    def test_wrong_password_and_unknown_email_identical(self, client):
        client.post(SIGNUP, json=make_signup_request())
        wrong = client.post(LOGIN, json={"email": "student@example.com", "password": "x"})
        unknown = client.post(LOGIN, json={"email": "ghost@example.com", "password": "x"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"error": "invalid_credentials"}

    def test_login_missing_fields(self, client):
        response = client.post(LOGIN, json={"email": "student@example.com"})
        assert response.status_code == 400
        assert response.json() == {"error": "missing_fields"}


# =============================================================================
# Refresh / Logout
# =============================================================================


class TestRefresh:
    """Tests for POST /api/auth/refresh."""

    def test_refresh_rotates_cookie(self, client):
        login = signup_and_login(client)
        old_token = login.cookies["adx_refresh"]

        response = post_with_refresh_cookie(client, REFRESH, old_token)
        assert response.status_code == 200
        assert response.json()["accessToken"]
        assert response.json()["user"]["email"] == "student@example.com"
        new_token = response.cookies["adx_refresh"]
        assert new_token != old_token
        assert set_cookie_headers(response, "adx_session")

    def test_same_token_twice(self, client):
        token = signup_and_login(client).cookies["adx_refresh"]

        first = post_with_refresh_cookie(client, REFRESH, token)
        second = post_with_refresh_cookie(client, REFRESH, token)
        assert first.status_code == 200
        assert second.status_code == 401
        assert second.json() == {"error": "invalid_token"}

    def test_missing_cookie(self, client):
        client.cookies.clear()
        response = client.post(REFRESH)
        assert response.status_code == 401
        assert response.json() == {"error": "missing_token"}

    def test_garbage_cookie(self, client):
        response = post_with_refresh_cookie(client, REFRESH, "garbage")
        assert response.status_code == 401
        assert response.json() == {"error": "invalid_token"}


class TestLogout:
    """Tests for POST /api/auth/logout."""

    def test_logout_clears_cookies_and_revokes(self, client):
        token = signup_and_login(client).cookies["adx_refresh"]

        response = post_with_refresh_cookie(client, LOGOUT, token)
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        for name in ("adx_refresh", "adx_session"):
            cleared = set_cookie_headers(response, name)[0]
            assert "Max-Age=0" in cleared

        again = post_with_refresh_cookie(client, REFRESH, token)
        assert again.status_code == 401
        assert again.json() == {"error": "invalid_token"}

    def test_logout_without_cookie(self, client):
        client.cookies.clear()
        response = client.post(LOGOUT)
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_logout_swallows_errors(self, client, monkeypatch):
        async def boom(self, raw_token):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(AuthService, "logout", boom)
        response = post_with_refresh_cookie(client, LOGOUT, "anything")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert set_cookie_headers(response, "adx_refresh")

    def test_logout_survives_failed_write(self, client, monkeypatch):
        token = signup_and_login(client).cookies["adx_refresh"]

        async def revoke_with_null_hash(self, token_id):
            record = await self.db.get(RefreshToken, token_id)
            record.token_hash = None
            await self.db.commit()

        monkeypatch.setattr(SessionStore, "revoke_token", revoke_with_null_hash)
        response = post_with_refresh_cookie(client, LOGOUT, token)
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        for name in ("adx_refresh", "adx_session"):
            assert "Max-Age=0" in set_cookie_headers(response, name)[0]

        monkeypatch.undo()
        # The failed revocation was rolled back, the record is untouched
        assert post_with_refresh_cookie(client, REFRESH, token).status_code == 200


# =============================================================================
# Password reset
# =============================================================================


class TestForgetPassword:
    """Tests for POST /api/auth/forget-password."""

    def test_known_email_sends_link(self, client, mailer):
        client.post(SIGNUP, json=make_signup_request())
        response = client.post(FORGET, json={"email": "student@example.com"})
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert len(mailer.sent) == 1
        assert mailer.sent[0][0] == "student@example.com"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"json": {"email": "ghost@example.com"}},
            {"json": {}},
            {"json": ["not", "an", "object"]},
            {"content": b"{broken", "headers": {"Content-Type": "application/json"}},
        ],
    )
    def test_always_ok(self, client, mailer, kwargs):
        response = client.post(FORGET, **kwargs)
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert mailer.sent == []

    def test_survives_failed_write(self, client, mailer, monkeypatch):
        client.post(SIGNUP, json=make_signup_request())

        async def store_with_null_email(self, user, token_hash, expires_at):
            user.password_reset_token_hash = token_hash
            user.email = None
            await self.db.commit()

        monkeypatch.setattr(SessionStore, "set_password_reset", store_with_null_email)
        response = client.post(FORGET, json={"email": "student@example.com"})
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert mailer.sent == []

        monkeypatch.undo()
        login = client.post(
            LOGIN, json={"email": "student@example.com", "password": "Password@123"}
        )
        assert login.status_code == 200


class TestResetPassword:
    """Tests for POST /api/auth/reset-password."""

    def _reset_token(self, client, mailer) -> str:
        client.post(SIGNUP, json=make_signup_request())
        client.post(FORGET, json={"email": "student@example.com"})
        return mailer.last_token()

    def test_reset_then_login_with_new_password(self, client, mailer):
        token = self._reset_token(client, mailer)
        response = client.post(
            RESET,
            json={"email": "student@example.com", "token": token, "newPassword": "NewPass@456"},
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        login = client.post(
            LOGIN, json={"email": "student@example.com", "password": "NewPass@456"}
        )
        assert login.status_code == 200

    def test_resubmitting_token_fails(self, client, mailer):
        token = self._reset_token(client, mailer)
        payload = {"email": "student@example.com", "token": token, "newPassword": "NewPass@456"}
        assert client.post(RESET, json=payload).status_code == 200

        response = client.post(RESET, json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "invalid_token"}

    def test_expired_token(self, client, mailer, app):
        token = self._reset_token(client, mailer)
        ttl = timedelta(seconds=app.state.settings.password_reset_ttl_seconds)
        app.state.clock = lambda: datetime.now(timezone.utc) + ttl
        response = client.post(
            RESET,
            json={"email": "student@example.com", "token": token, "newPassword": "NewPass@456"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "token_expired"}

    def test_missing_fields(self, client):
        response = client.post(RESET, json={"email": "student@example.com"})
        assert response.status_code == 400
        assert response.json() == {"error": "missing_fields"}


# =============================================================================
# Full session lifecycle
# =============================================================================


class TestSessionLifecycle:
    """Signup, login, refresh, logout end to end."""

    def test_full_flow(self, client):
        signup = client.post(SIGNUP, json=make_signup_request())
        assert signup.status_code == 201

        login = client.post(
            LOGIN, json={"email": "student@example.com", "password": "Password@123"}
        )
        assert login.status_code == 200
        first_token = login.cookies["adx_refresh"]

        refreshed = post_with_refresh_cookie(client, REFRESH, first_token)
        assert refreshed.status_code == 200
        second_token = refreshed.cookies["adx_refresh"]
        assert second_token != first_token
        assert post_with_refresh_cookie(client, REFRESH, first_token).status_code == 401

        logout = post_with_refresh_cookie(client, LOGOUT, second_token)
        assert logout.status_code == 200
        assert post_with_refresh_cookie(client, REFRESH, second_token).status_code == 401


class TestUnexpectedErrors:
    """Unhandled exceptions render as a bare internal_error."""

    def test_internal_error_body(self, app, monkeypatch):
        async def boom(self, email, password):
            raise RuntimeError("secret internal detail")

        monkeypatch.setattr(AuthService, "login", boom)
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post(
                LOGIN, json={"email": "student@example.com", "password": "x"}
            )
        assert response.status_code == 500
        assert response.json() == {"error": "internal_error"}
