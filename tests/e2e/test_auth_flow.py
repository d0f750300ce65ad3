"""End-to-end tests for the browser authentication flow."""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from backoffice.adapter.oidc import MockOidcClient
from backoffice.domain.service import IdentityProviderClient
from backoffice.interface.api.app import create_app
from tests.di import build_test_container

SESSION_COOKIE = "backoffice_session"
STATE_COOKIE = "oauth_state"


@pytest.fixture
def container():
    """Mock-backed container shared by the app and the test."""
    return build_test_container()


@pytest.fixture
def client(container):
    """Create test client."""
    with TestClient(create_app(container)) as test_client:
        yield test_client


@pytest.fixture
def provider(client, container) -> MockOidcClient:
    """The mock identity provider the app is talking to."""
    return client.portal.call(container.get, IdentityProviderClient)


def _login(client: TestClient) -> str:
    """Run login and callback, returning the state that was used."""
    response = client.get("/auth/login", follow_redirects=False)
    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    client.get(
        "/auth/callback",
        params={"code": "abc", "state": state, "session_state": "s1"},
        follow_redirects=False,
    )
    return state


class TestLogin:
    """End-to-end tests for starting and completing a login."""

    def test_login_redirects_to_provider_with_state_cookie(self, client):
        """Should redirect to the provider and remember the state."""
        # Act
        response = client.get("/auth/login", follow_redirects=False)

        # Assert
        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("https://id.example.com/mock/auth")
        state = parse_qs(urlparse(location).query)["state"][0]
        assert client.cookies.get(STATE_COOKIE) == state

    def test_callback_sets_session_and_redirects_to_dashboard(self, client, provider):
        """A valid callback creates a session cookie."""
        # Arrange
        login = client.get("/auth/login", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        # Act
        response = client.get(
            "/auth/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )

        # Assert
        assert response.status_code == 302
        assert response.headers["location"] == "http://localhost:3000/dashboard"
        assert client.cookies.get(SESSION_COOKIE)
        assert client.cookies.get(STATE_COOKIE) is None
        set_cookie = ",".join(response.headers.get_list("set-cookie"))
        assert "HttpOnly" in set_cookie
        assert provider.calls[-2:] == ["exchange_authorization_code", "fetch_profile"]

    def test_keycloak_callback_path(self, client):
        """The provider-specific callback path behaves the same."""
        # Arrange
        login = client.get("/auth/login", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        # Act
        response = client.get(
            "/auth/callback/keycloak",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )

        # Assert
        assert response.headers["location"] == "http://localhost:3000/dashboard"

    def test_state_cannot_be_replayed(self, client):
        """The state cookie is good for one callback only."""
        # Arrange
        state = _login(client)

        # Act
        response = client.get(
            "/auth/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )

        # Assert
        assert response.status_code == 302
        assert response.headers["location"] == "http://localhost:3000/login?error=invalid_state"

    def test_forged_state_is_rejected(self, client, provider):
        """A callback whose state does not match never reaches the provider."""
        # Arrange
        client.get("/auth/login", follow_redirects=False)

        # Act
        response = client.get(
            "/auth/callback",
            params={"code": "abc", "state": "attacker"},
            follow_redirects=False,
        )

        # Assert
        assert response.headers["location"].endswith("/login?error=invalid_state")
        assert "exchange_authorization_code" not in provider.calls
        assert client.cookies.get(SESSION_COOKIE) is None

    def test_provider_error_redirects_with_code(self, client):
        """Provider-reported errors become an opaque error code."""
        # Act
        response = client.get(
            "/auth/callback",
            params={"error": "access_denied", "error_description": "nope"},
            follow_redirects=False,
        )

        # Assert
        assert response.status_code == 302
        assert response.headers["location"].endswith("/login?error=provider_error")

    def test_missing_parameters(self, client):
        """A callback without code and state is rejected."""
        # Act
        response = client.get("/auth/callback", follow_redirects=False)

        # Assert
        assert response.headers["location"].endswith("/login?error=missing_parameters")

    def test_token_exchange_failure(self, client, provider):
        """A rejected code redirects with token_exchange_failed."""
        # Arrange
        provider.fail_exchange = True
        login = client.get("/auth/login", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        # Act
        response = client.get(
            "/auth/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )

        # Assert
        assert response.headers["location"].endswith("/login?error=token_exchange_failed")
        assert client.cookies.get(SESSION_COOKIE) is None


class TestSession:
    """End-to-end tests for session resolution."""

    def test_me_returns_profile_without_token(self, client):
        """Should return the current user once logged in."""
        # Arrange
        _login(client)

        # Act
        response = client.get("/auth/me")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "42"
        assert data["email"] == "a@b.com"
        assert data["authorities"] == ["ROLE_ADMIN", "CAP_VEHICLE_READ"]
        assert "access_token" not in data

    def test_user_alias_matches_me(self, client):
        """/auth/user serves the same profile as /auth/me."""
        # Arrange
        _login(client)

        # Act
        response = client.get("/auth/user")

        # Assert
        assert response.status_code == 200
        assert response.json() == client.get("/auth/me").json()
        assert "access_token" not in response.json()

    def test_user_alias_without_cookie(self, client):
        """/auth/user is a 401 without a session, like /auth/me."""
        # Act
        response = client.get("/auth/user")

        # Assert
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    def test_session_returns_fresh_access_token(self, client):
        """The session endpoint exposes the per-request access token."""
        # Arrange
        _login(client)

        # Act
        response = client.get("/auth/session")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is True
        assert data["user"]["id"] == "42"
        assert data["access_token"].startswith("mock-access-token")
        assert data["session_expires_at"] is not None

    def test_me_without_cookie(self, client):
        """Should return 401 when not authenticated."""
        # Act
        response = client.get("/auth/me")

        # Assert
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}
        assert "set-cookie" not in response.headers

    def test_forged_cookie_is_cleared(self, client, provider):
        """A forged cookie gives 401 and is deleted, without calling the provider."""
        # Arrange
        client.cookies.set(SESSION_COOKIE, "forged-session-value")

        # Act
        response = client.get("/auth/me")

        # Assert
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}
        assert f'{SESSION_COOKIE}=""' in response.headers["set-cookie"]
        assert provider.calls == []

    def test_revoked_session_is_cleared(self, client, provider):
        """A rejected refresh token ends the session."""
        # Arrange
        _login(client)
        provider.fail_refresh = True

        # Act
        response = client.get("/auth/me")

        # Assert
        assert response.status_code == 401
        assert client.cookies.get(SESSION_COOKIE) is None

    def test_profile_outage_keeps_session(self, client, provider):
        """A failed profile fetch is a 401 but the cookie survives."""
        # Arrange
        _login(client)
        provider.fail_profile = True

        # Act
        response = client.get("/auth/me")

        # Assert
        assert response.status_code == 401
        assert client.cookies.get(SESSION_COOKIE)

    def test_rotated_refresh_token_reissues_cookie(self, client, provider):
        """A rotated refresh token is written back to the session cookie."""
        # Arrange
        _login(client)
        original = client.cookies.get(SESSION_COOKIE)
        provider.rotate_refresh_tokens = True

        # Act
        response = client.get("/auth/me")

        # Assert
        assert response.status_code == 200
        assert SESSION_COOKIE in response.headers["set-cookie"]
        assert client.cookies.get(SESSION_COOKIE) != original


class TestLogout:
    """End-to-end tests for logout."""

    def test_logout_clears_session(self, client):
        """Should return the provider logout URL and clear the cookie."""
        # Arrange
        _login(client)

        # Act
        response = client.post("/auth/logout")

        # Assert
        assert response.status_code == 200
        params = parse_qs(urlparse(response.json()["logout_url"]).query)
        assert params["id_token_hint"] == ["mock-id-token"]
        assert client.cookies.get(SESSION_COOKIE) is None
        assert client.get("/auth/me").status_code == 401

    def test_logout_without_cookie(self, client):
        """Logout works without a session and carries no hint."""
        # Act
        response = client.post("/auth/logout")

        # Assert
        assert response.status_code == 200
        assert "id_token_hint" not in response.json()["logout_url"]

    def test_logout_redirect(self, client):
        """GET logout redirects straight to the provider."""
        # Arrange
        _login(client)

        # Act
        response = client.get("/auth/logout", follow_redirects=False)

        # Assert
        assert response.status_code == 302
        assert response.headers["location"].startswith("https://id.example.com/mock/logout")
        assert client.cookies.get(SESSION_COOKIE) is None


class TestHealth:
    """Health endpoint."""

    def test_health(self, client):
        """Should report healthy without authentication."""
        # Act
        response = client.get("/health")

        # Assert
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestTelemetry:
    """Secrets from the callback URL stay out of exported spans."""

    def test_authorization_code_not_in_spans(self, capfire, client):
        """The code and state of a callback never reach span names or attributes."""
        # Arrange
        login = client.get("/auth/login", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        # Act
        completed = client.get(
            "/auth/callback",
            params={"code": "leaky-auth-code-123", "state": state},
            follow_redirects=False,
        )
        client.get(
            "/auth/callback/keycloak",
            params={"code": "leaky-auth-code-123", "state": "leaky-state-456"},
            follow_redirects=False,
        )

        # Assert
        spans = capfire.exporter.exported_spans
        assert any(span.name == "complete_login" for span in spans)
        for span in spans:
            exported = span.name + " " + " ".join(
                str(value) for value in (span.attributes or {}).values()
            )
            assert "leaky-auth-code-123" not in exported
            assert "leaky-state-456" not in exported
            assert state not in exported
        assert completed.headers["location"].endswith("/dashboard")
