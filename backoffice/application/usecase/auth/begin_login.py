"""Begin login use case."""

import secrets

import logfire
from pydantic import BaseModel

from backoffice.application.usecase.base import BaseUseCase
from backoffice.domain.service import IdentityProviderClient


class BeginLoginResponse(BaseModel):
    """Where to send the browser, and the nonce to remember until it returns."""

    authorization_url: str
    state: str


class BeginLoginUseCase(BaseUseCase):
    """Use case for starting an authorization-code login."""

    def __init__(self, identity_provider: IdentityProviderClient) -> None:
        """Initialize begin login use case.

        Args:
            identity_provider: Identity provider client
        """
        self.identity_provider = identity_provider

    async def execute(self, request: None = None) -> BeginLoginResponse:
        """Generate a CSRF state nonce and the matching authorization URL.

        The caller stores ``state`` in the state cookie; the callback compares
        it with the value the provider echoes back.
        """
        state = secrets.token_urlsafe(32)
        authorization_url = self.identity_provider.build_authorization_url(state)
        logfire.info("Login initiated")
        return BeginLoginResponse(authorization_url=authorization_url, state=state)
