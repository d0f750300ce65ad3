"""Identity provider interface."""

from backoffice.domain.value import ProviderProfile, TokenSet


class IdentityProviderClient:
    """Interface to the OpenID Connect identity provider.

    Network operations raise the matching ``ProviderCallError`` subclass and
    are never retried: an expired or revoked grant will not start working
    on a second attempt.
    """

    def build_authorization_url(self, state: str) -> str:
        """Build the URL that starts an authorization-code login.

        Args:
            state: CSRF nonce that the provider echoes back on the callback

        Returns:
            Authorization endpoint URL with query parameters
        """
        raise NotImplementedError

    async def exchange_authorization_code(self, code: str) -> TokenSet:
        """Exchange a single-use authorization code for tokens.

        Raises:
            TokenExchangeError: If the provider rejects the code or is unreachable
        """
        raise NotImplementedError

    async def refresh_access_token(self, refresh_token: str) -> TokenSet:
        """Mint a new access token from a refresh token.

        Raises:
            RefreshError: If the refresh token is expired, revoked or the call fails
        """
        raise NotImplementedError

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """Fetch the subject profile for an access token.

        Raises:
            ProfileFetchError: If the profile cannot be fetched
        """
        raise NotImplementedError

    def build_logout_url(self, id_token_hint: str | None = None) -> str:
        """Build the provider end-session URL. Makes no network call.

        Args:
            id_token_hint: ID token of the session being ended, if known

        Returns:
            End-session endpoint URL with query parameters
        """
        raise NotImplementedError
