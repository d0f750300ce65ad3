"""Logout use case."""

import logfire
from pydantic import BaseModel, Field

from backoffice.application.usecase.base import BaseUseCase
from backoffice.domain.error import InvalidSessionError
from backoffice.domain.service import IdentityProviderClient, SessionCodec


class LogoutRequest(BaseModel):
    """Logout request."""

    sealed_session: str | None = Field(default=None, repr=False)  # Session cookie value


class LogoutResult(BaseModel):
    """Logout result."""

    logout_url: str
    had_session: bool


class LogoutUseCase(BaseUseCase):
    """Use case for ending the session and building the provider logout URL.

    Never fails: an absent or unreadable cookie only means the logout URL
    carries no ``id_token_hint``. Deleting the cookie is up to the caller.
    """

    def __init__(
        self,
        identity_provider: IdentityProviderClient,
        session_codec: SessionCodec,
    ) -> None:
        """Initialize logout use case.

        Args:
            identity_provider: Identity provider client
            session_codec: Session sealing service
        """
        self.identity_provider = identity_provider
        self.session_codec = session_codec

    async def execute(self, request: LogoutRequest) -> LogoutResult:
        """Build the end-session URL for the current session, if any."""
        id_token_hint = None
        had_session = False

        if request.sealed_session:
            try:
                record = self.session_codec.unseal(request.sealed_session)
                id_token_hint = record.id_token
                had_session = True
                logfire.info("Logout", subject_id=record.subject_id)
            except InvalidSessionError:
                logfire.info("Logout with unreadable session cookie")

        return LogoutResult(
            logout_url=self.identity_provider.build_logout_url(id_token_hint),
            had_session=had_session,
        )
