"""Resolve session use case."""

from datetime import datetime

import logfire
from pydantic import BaseModel, Field

from backoffice.application.usecase.base import BaseUseCase
from backoffice.domain.error import InvalidSessionError, ProfileFetchError, RefreshError
from backoffice.domain.service import IdentityProviderClient, SessionCodec
from backoffice.domain.value import AuthenticatedProfile, SessionFailure
from backoffice.util.error import SealError


class ResolveSessionRequest(BaseModel):
    """Resolve session request."""

    sealed_session: str | None = Field(default=None, repr=False)  # Session cookie value


class SessionResolution(BaseModel):
    """Outcome of resolving one request's session.

    Attributes:
        profile: Current caller with a fresh access token, when authenticated
        failure: Why resolution failed, when it did
        clear_cookie: The presented session cookie is unusable and should be deleted
        rotated_session: Newly sealed session to re-issue after the provider
            rotated the refresh token
        session_max_age: Cookie Max-Age for ``rotated_session``
        session_expires_at: When the session's refresh token expires
    """

    profile: AuthenticatedProfile | None = None
    failure: SessionFailure | None = None
    clear_cookie: bool = False
    rotated_session: str | None = Field(default=None, repr=False)
    session_max_age: int | None = None
    session_expires_at: datetime | None = None

    @property
    def authenticated(self) -> bool:
        return self.profile is not None


class ResolveSessionUseCase(BaseUseCase):
    """Use case for establishing the caller's identity on a protected request.

    Every call performs one refresh-token exchange and one profile fetch;
    nothing is cached between requests.
    """

    def __init__(
        self,
        identity_provider: IdentityProviderClient,
        session_codec: SessionCodec,
    ) -> None:
        """Initialize resolve session use case.

        Args:
            identity_provider: Identity provider client
            session_codec: Session sealing service
        """
        self.identity_provider = identity_provider
        self.session_codec = session_codec

    async def execute(self, request: ResolveSessionRequest) -> SessionResolution:
        """Execute session resolution.

        Steps:
        1. No cookie: unauthenticated
        2. Unseal the cookie; a corrupt, forged or expired one counts as no session
        3. Refresh the access token; a rejected refresh token ends the session
        4. Fetch the current profile with the new access token
        5. Re-seal the session if the provider rotated the refresh token

        Args:
            request: Request with the session cookie value

        Returns:
            Authenticated profile, or a failure reason
        """
        if not request.sealed_session:
            return SessionResolution(failure=SessionFailure.NO_SESSION)

        with logfire.span("resolve_session"):
            try:
                record = self.session_codec.unseal(request.sealed_session)
            except InvalidSessionError:
                return SessionResolution(
                    failure=SessionFailure.INVALID_SESSION, clear_cookie=True
                )

            try:
                tokens = await self.identity_provider.refresh_access_token(
                    record.refresh_token
                )
            except RefreshError as e:
                logfire.info(
                    "Session refresh rejected",
                    subject_id=record.subject_id,
                    status_code=e.status_code,
                    provider_error=e.provider_error,
                )
                return SessionResolution(
                    failure=SessionFailure.REFRESH_FAILED, clear_cookie=True
                )

            try:
                profile = await self.identity_provider.fetch_profile(tokens.access_token)
            except ProfileFetchError as e:
                logfire.warn(
                    "Profile fetch failed during session resolution",
                    subject_id=record.subject_id,
                    status_code=e.status_code,
                )
                return SessionResolution(failure=SessionFailure.PROFILE_FETCH_FAILED)

            rotated_session = None
            if tokens.refresh_token != record.refresh_token:
                rotated = record.rotated(tokens)
                try:
                    rotated_session = self.session_codec.seal(rotated)
                    record = rotated
                except SealError as e:
                    # The old cookie stays valid until the provider revokes it
                    logfire.error(
                        "Rotated session could not be sealed",
                        subject_id=record.subject_id,
                        error=str(e),
                    )

            return SessionResolution(
                profile=AuthenticatedProfile.from_provider(profile, tokens),
                rotated_session=rotated_session,
                session_max_age=record.seconds_remaining() if rotated_session else None,
                session_expires_at=record.refresh_token_expires_at,
            )
