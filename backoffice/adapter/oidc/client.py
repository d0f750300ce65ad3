"""OpenID Connect client for the back-office identity provider.

Implements the authorization-code flow with client-secret authentication
against Keycloak-style endpoints.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode

import httpx
import logfire

from backoffice.adapter.oidc.profile import profile_from_backend, profile_from_userinfo
from backoffice.config import IdentityProviderSettings
from backoffice.domain.error import (
    ProfileFetchError,
    ProviderCallError,
    RefreshError,
    TokenExchangeError,
)
from backoffice.domain.service.identity_provider import IdentityProviderClient
from backoffice.domain.value import ProviderProfile, TokenSet

# Used when the token response omits expires_in
DEFAULT_ACCESS_TOKEN_LIFETIME = 300


class OidcClient(IdentityProviderClient):
    """Base class for OIDC clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealOidcClient(OidcClient):
    """OIDC client talking to the configured identity provider over HTTPS."""

    def __init__(
        self,
        settings: IdentityProviderSettings,
        redirect_uri: str,
        post_logout_redirect_uri: str,
        default_refresh_lifetime: int,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize OIDC client.

        Args:
            settings: Identity provider settings (endpoints, credentials, timeout)
            redirect_uri: Callback URL registered with the provider
            post_logout_redirect_uri: Where the provider sends the browser after logout
            default_refresh_lifetime: Refresh token lifetime in seconds when the
                provider does not report one
            transport: Optional httpx transport, used by tests
        """
        self.client_id = settings.client_id
        self.client_secret = settings.client_secret
        self.scope = settings.scope
        self.redirect_uri = redirect_uri
        self.post_logout_redirect_uri = post_logout_redirect_uri
        self.default_refresh_lifetime = default_refresh_lifetime

        self.authorization_endpoint = settings.authorization_endpoint
        self.token_endpoint = settings.token_endpoint
        self.userinfo_endpoint = settings.userinfo_endpoint
        self.end_session_endpoint = settings.end_session_endpoint
        self.backend_userinfo_endpoint = settings.backend_userinfo_endpoint

        self._timeout = httpx.Timeout(settings.timeout_seconds)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def build_authorization_url(self, state: str) -> str:
        """Build the provider authorization URL.

        Args:
            state: CSRF nonce stored in the state cookie

        Returns:
            Authorization URL to redirect the browser to
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorization_endpoint}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenSet:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback

        Returns:
            Issued tokens

        Raises:
            TokenExchangeError: If the provider rejects the code, the call
                fails or times out, or no refresh token is issued
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
        }

        with logfire.span("oidc.exchange_authorization_code"):
            payload = await self._token_request(data, TokenExchangeError, "Token exchange")
            if not payload.get("refresh_token"):
                raise TokenExchangeError("Token response carried no refresh token")
            tokens = self._parse_tokens(payload, TokenExchangeError)
            logfire.info("Authorization code exchanged")
            return tokens

    async def refresh_access_token(self, refresh_token: str) -> TokenSet:
        """Mint a new access token.

        Args:
            refresh_token: Refresh token from the session record

        Returns:
            Issued tokens. When the provider does not rotate the refresh
            token, the one passed in is returned unchanged.

        Raises:
            RefreshError: If the refresh token is rejected or the call fails
        """
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        with logfire.span("oidc.refresh_access_token"):
            payload = await self._token_request(data, RefreshError, "Token refresh")
            if not payload.get("refresh_token"):
                payload = {**payload, "refresh_token": refresh_token}
            return self._parse_tokens(payload, RefreshError)

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """Fetch the subject profile.

        The back-office API is asked first when configured; the provider's
        user-info endpoint is the fallback.

        Args:
            access_token: Access token of the subject

        Returns:
            Subject profile

        Raises:
            ProfileFetchError: If no source returned a usable profile
        """
        with logfire.span("oidc.fetch_profile"):
            if self.backend_userinfo_endpoint:
                try:
                    payload = await self._get_json(
                        self.backend_userinfo_endpoint, access_token
                    )
                    return profile_from_backend(payload)
                except (ProfileFetchError, ValueError) as e:
                    logfire.warn(
                        "Back-office profile unavailable, using provider user-info",
                        error=str(e),
                    )

            payload = await self._get_json(self.userinfo_endpoint, access_token)
            try:
                return profile_from_userinfo(payload, self.client_id)
            except ValueError as e:
                raise ProfileFetchError(f"Malformed user-info response: {e}") from e

    def build_logout_url(self, id_token_hint: str | None = None) -> str:
        """Build the provider end-session URL.

        Args:
            id_token_hint: ID token of the ended session, if retained

        Returns:
            End-session URL; valid without a hint, but the provider then
            cannot confirm single logout for that session
        """
        params = {
            "post_logout_redirect_uri": self.post_logout_redirect_uri,
            "client_id": self.client_id,
        }
        if id_token_hint:
            params["id_token_hint"] = id_token_hint

        return f"{self.end_session_endpoint}?{urlencode(params)}"

    async def _token_request(
        self,
        data: dict[str, str],
        error_cls: type[ProviderCallError],
        operation: str,
    ) -> dict[str, Any]:
        """POST to the token endpoint and return the JSON body.

        Raises:
            error_cls: On non-2xx status, transport error, timeout or non-JSON body
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_endpoint,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logfire.error(f"{operation} HTTP error", error_type=type(e).__name__)
            raise error_cls(f"HTTP error during {operation.lower()}: {e!r}") from e

        if not response.is_success:
            provider_error = _provider_error(response)
            logfire.error(
                f"{operation} failed",
                status_code=response.status_code,
                provider_error=provider_error,
            )
            raise error_cls(
                f"{operation} failed: {response.status_code}",
                status_code=response.status_code,
                provider_error=provider_error,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise error_cls(f"{operation} returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise error_cls(f"{operation} returned an unexpected body")
        return payload

    async def _get_json(self, url: str, access_token: str) -> dict[str, Any]:
        """GET a bearer-protected JSON resource.

        Raises:
            ProfileFetchError: On non-2xx status, transport error, timeout or non-JSON body
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    url,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Accept": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            logfire.error("Profile fetch HTTP error", url=url, error_type=type(e).__name__)
            raise ProfileFetchError(f"HTTP error fetching profile: {e!r}") from e

        if not response.is_success:
            provider_error = _provider_error(response)
            logfire.error(
                "Profile fetch failed",
                url=url,
                status_code=response.status_code,
                provider_error=provider_error,
            )
            raise ProfileFetchError(
                f"Profile fetch failed: {response.status_code}",
                status_code=response.status_code,
                provider_error=provider_error,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ProfileFetchError("Profile endpoint returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise ProfileFetchError("Profile endpoint returned an unexpected body")
        return payload

    def _parse_tokens(
        self, payload: dict[str, Any], error_cls: type[ProviderCallError]
    ) -> TokenSet:
        """Build a ``TokenSet`` with absolute expiries from a token response."""
        now = datetime.now(timezone.utc)
        try:
            expires_in = int(payload.get("expires_in") or DEFAULT_ACCESS_TOKEN_LIFETIME)
            # Keycloak reports 0 for offline tokens, which do not expire on their own
            refresh_expires_in = int(
                payload.get("refresh_expires_in") or self.default_refresh_lifetime
            )
            return TokenSet(
                access_token=payload["access_token"],
                access_token_expires_at=now + timedelta(seconds=expires_in),
                refresh_token=payload["refresh_token"],
                refresh_token_expires_at=now + timedelta(seconds=refresh_expires_in),
                id_token=payload.get("id_token"),
                token_type=payload.get("token_type") or "Bearer",
                scope=payload.get("scope"),
                session_state=payload.get("session_state"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise error_cls(f"Malformed token response: {e!r}") from e


def _provider_error(response: httpx.Response) -> str:
    """Extract the OAuth error from a failed response, for logs only."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]

    if isinstance(body, dict) and "error" in body:
        description = body.get("error_description")
        return f"{body['error']}: {description}" if description else str(body["error"])
    return response.text[:500]


class MockOidcClient(OidcClient):
    """Scriptable fake identity provider for tests.

    Returns deterministic tokens and profile data without network calls,
    records every operation in ``calls``, and can be told to fail any step.
    """

    def __init__(self, profile: ProviderProfile | None = None):
        """Initialize mock client without real provider configuration."""
        self.profile = profile or ProviderProfile(
            id="42",
            username="mock.user",
            email="a@b.com",
            email_verified=True,
            first_name="Mock",
            last_name="User",
            company_name="Mock Fleet Ltd",
            country="GB",
            authorities=["ROLE_ADMIN", "CAP_VEHICLE_READ"],
        )
        self.calls: list[str] = []

        self.fail_exchange = False
        self.fail_refresh = False
        self.fail_profile = False
        self.rotate_refresh_tokens = False
        self.issue_id_token = True
        self.refresh_token_lifetime = timedelta(hours=8)

        self._rotations = 0

    def build_authorization_url(self, state: str) -> str:
        """Return mock authorization URL."""
        self.calls.append("build_authorization_url")
        return f"https://id.example.com/mock/auth?{urlencode({'state': state, 'mock': 'true'})}"

    async def exchange_authorization_code(self, code: str) -> TokenSet:
        """Return mock tokens for any code unless told to fail."""
        self.calls.append("exchange_authorization_code")
        if self.fail_exchange:
            raise TokenExchangeError(
                "Token exchange failed: 400",
                status_code=400,
                provider_error="invalid_grant: Code not valid",
            )
        return self._tokens(refresh_token="mock-refresh-token")

    async def refresh_access_token(self, refresh_token: str) -> TokenSet:
        """Return mock tokens, rotating the refresh token when configured."""
        self.calls.append("refresh_access_token")
        if self.fail_refresh:
            raise RefreshError(
                "Token refresh failed: 400",
                status_code=400,
                provider_error="invalid_grant: Token is not active",
            )
        if self.rotate_refresh_tokens:
            self._rotations += 1
            refresh_token = f"mock-refresh-token-{self._rotations}"
        return self._tokens(refresh_token=refresh_token)

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """Return the configured mock profile."""
        self.calls.append("fetch_profile")
        if self.fail_profile:
            raise ProfileFetchError("Profile fetch failed: 503", status_code=503)
        return self.profile

    def build_logout_url(self, id_token_hint: str | None = None) -> str:
        """Return mock end-session URL."""
        self.calls.append("build_logout_url")
        params = {"post_logout_redirect_uri": "http://localhost:3000"}
        if id_token_hint:
            params["id_token_hint"] = id_token_hint
        return f"https://id.example.com/mock/logout?{urlencode(params)}"

    def _tokens(self, refresh_token: str) -> TokenSet:
        now = datetime.now(timezone.utc)
        return TokenSet(
            access_token=f"mock-access-token-{len(self.calls)}",
            access_token_expires_at=now + timedelta(minutes=5),
            refresh_token=refresh_token,
            refresh_token_expires_at=now + self.refresh_token_lifetime,
            id_token="mock-id-token" if self.issue_id_token else None,
        )
