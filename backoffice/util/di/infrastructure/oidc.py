"""Identity provider infrastructure providers."""

from dishka import Scope, provide

from backoffice.adapter.oidc import RealOidcClient
from backoffice.config import Settings
from backoffice.domain.service import IdentityProviderClient
from backoffice.util.di.base import ProviderBase


class OidcProvider(ProviderBase):
    """Identity provider component base."""

    __mock_component__ = "oidc"


class ProdOidcProvider(OidcProvider):
    """Production OpenID Connect provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_identity_provider_client(self, settings: Settings) -> IdentityProviderClient:
        """Provide the OpenID Connect client.

        The redirect URI is this API's callback route and the post-logout
        redirect goes back to the frontend.

        Returns:
            Identity provider client
        """
        return RealOidcClient(
            settings=settings.identity_provider,
            redirect_uri=settings.api.callback_url,
            post_logout_redirect_uri=settings.api.app_url,
            default_refresh_lifetime=settings.session.default_lifetime_seconds,
        )
