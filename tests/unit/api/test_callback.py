"""
Unit tests for the OAuth callback API.

The identity client is replaced through FastAPI dependency overrides; redirects
are inspected without following them.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from urllib.parse import quote

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from viralpost.api.callback import app, get_cookie_storage, get_identity_client, get_settings
from viralpost.auth.errors import AuthProviderError
from viralpost.auth.storage import RequestCookieStorage
from viralpost.config.settings import EnvSettings


def _settings(app_env: str) -> EnvSettings:
    return EnvSettings.model_validate(
        {"SUPABASE_URL": "http://localhost:54321", "SUPABASE_ANON_KEY": "anon", "APP_ENV": app_env}
    )


@pytest.fixture()
def identity():
    return MagicMock()


@pytest.fixture()
def make_client(identity):
    def _make(app_env: str = "development", base_url: str = "http://localhost:3000") -> TestClient:
        app.dependency_overrides[get_settings] = lambda: _settings(app_env)
        app.dependency_overrides[get_identity_client] = lambda: identity
        return TestClient(app, base_url=base_url)

    yield _make
    app.dependency_overrides.clear()


def _error_location(origin: str, message: str) -> str:
    return f"{origin}/auth/error?message={quote(message, safe='')}"


class TestCallbackSuccess:
    def test_development_redirects_to_request_origin(self, make_client, identity):
        response = make_client().get(
            "/auth/callback", params={"code": "abc", "next": "/dashboard"}, follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"] == "http://localhost:3000/dashboard"
        identity.exchange_code_for_session.assert_called_once_with("abc")

    def test_next_defaults_to_root(self, make_client):
        response = make_client().get("/auth/callback", params={"code": "abc"}, follow_redirects=False)
        assert response.headers["location"] == "http://localhost:3000/"

    def test_production_uses_forwarded_host_over_https(self, make_client):
        response = make_client("production").get(
            "/auth/callback",
            params={"code": "abc", "next": "/dashboard"},
            headers={"x-forwarded-host": "app.viralpost.io"},
            follow_redirects=False,
        )
        assert response.headers["location"] == "https://app.viralpost.io/dashboard"

    def test_production_without_forwarded_host_uses_request_origin(self, make_client):
        response = make_client("production", base_url="http://testserver").get(
            "/auth/callback", params={"code": "abc", "next": "/dashboard"}, follow_redirects=False
        )
        assert response.headers["location"] == "http://testserver/dashboard"

    @pytest.mark.parametrize("target", ["https://evil.example", "//evil.example/path"])
    def test_external_next_stays_on_site(self, make_client, target):
        response = make_client().get(
            "/auth/callback", params={"code": "abc", "next": target}, follow_redirects=False
        )
        assert response.headers["location"] == "http://localhost:3000/"

    def test_session_cookies_are_written_on_redirect(self, identity):
        def _client_with_storage(storage: RequestCookieStorage = Depends(get_cookie_storage)):
            identity.exchange_code_for_session.side_effect = lambda code: storage.set_item(
                "sb-localhost-auth-token", '{"access_token":"at"}'
            )
            return identity

        app.dependency_overrides[get_settings] = lambda: _settings("development")
        app.dependency_overrides[get_identity_client] = _client_with_storage
        try:
            response = TestClient(app, base_url="http://localhost:3000").get(
                "/auth/callback", params={"code": "abc"}, follow_redirects=False
            )
        finally:
            app.dependency_overrides.clear()

        set_cookie = response.headers["set-cookie"]
        assert "sb-localhost-auth-token=%7B%22access_token%22%3A%22at%22%7D" in set_cookie
        assert "Path=/" in set_cookie
        assert "SameSite=lax" in set_cookie


class TestCallbackFailure:
    def test_missing_code(self, make_client, identity):
        response = make_client().get("/auth/callback", params={"next": "/dashboard"}, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == _error_location("http://localhost:3000", "Invalid callback parameters")
        identity.exchange_code_for_session.assert_not_called()

    def test_exchange_error_message_is_forwarded(self, make_client, identity):
        identity.exchange_code_for_session.side_effect = AuthProviderError(
            "invalid flow state, no valid flow state found"
        )

        response = make_client().get("/auth/callback", params={"code": "stale"}, follow_redirects=False)

        assert response.headers["location"] == _error_location(
            "http://localhost:3000", "invalid flow state, no valid flow state found"
        )
        assert "set-cookie" not in response.headers

    def test_error_redirect_ignores_forwarded_host(self, make_client, identity):
        identity.exchange_code_for_session.side_effect = AuthProviderError("Bad code")

        response = make_client("production", base_url="http://testserver").get(
            "/auth/callback",
            params={"code": "abc"},
            headers={"x-forwarded-host": "app.viralpost.io"},
            follow_redirects=False,
        )

        assert response.headers["location"] == _error_location("http://testserver", "Bad code")


class TestErrorPage:
    def test_shows_message_escaped(self, make_client):
        response = make_client().get("/auth/error", params={"message": "<script>alert(1)</script>"})

        assert response.status_code == 200
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in response.text
        assert "<script>" not in response.text

    def test_default_message(self, make_client):
        response = make_client().get("/auth/error")
        assert "An authentication error occurred" in response.text


class TestPerRequestClient:
    def test_client_has_auto_refresh_off(self):
        settings = _settings("production")
        storage = RequestCookieStorage({})
        with patch("viralpost.api.callback.create_identity_client") as factory:
            client = get_identity_client(settings, storage)

        factory.assert_called_once_with(settings, storage=storage, auto_refresh=False)
        assert client is factory.return_value


class TestCurrentUser:
    def test_returns_verified_user(self, make_client, identity):
        identity.get_user.return_value = SimpleNamespace(
            id="user-uuid-abc-123",
            email="jane@example.com",
            user_metadata={},
            app_metadata={"role": "premium"},
        )

        response = make_client().get("/auth/user")

        assert response.status_code == 200
        assert response.json() == {"id": "user-uuid-abc-123", "email": "jane@example.com", "role": "premium"}

    def test_no_session_is_unauthorized(self, make_client, identity):
        identity.get_user.return_value = None

        response = make_client().get("/auth/user")

        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    def test_provider_error_is_unauthorized(self, make_client, identity):
        identity.get_user.side_effect = AuthProviderError("invalid JWT")
        response = make_client().get("/auth/user")
        assert response.status_code == 401


def test_health(make_client):
    response = make_client().get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
