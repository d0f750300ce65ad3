"""Mock identity provider for testing."""

from dishka import Scope, provide

from backoffice.adapter.oidc import MockOidcClient
from backoffice.domain.service import IdentityProviderClient
from backoffice.util.di.infrastructure.oidc import OidcProvider


class MockOidcProvider(OidcProvider):
    """Mock identity provider component using the scriptable mock client.

    The client is APP-scoped, so tests can fetch it from the container to
    script failures and inspect ``calls``.
    """

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_identity_provider_client(self) -> IdentityProviderClient:
        """Provide mock OIDC client."""
        return MockOidcClient()
