"""Complete login use case (OAuth authorization callback)."""

import secrets

import logfire
from pydantic import BaseModel, Field

from backoffice.application.usecase.base import BaseUseCase
from backoffice.config import SessionSettings
from backoffice.domain.error import (
    CsrfMismatchError,
    MissingParametersError,
    ProfileFetchError,
    ProviderReportedError,
    TokenExchangeError,
)
from backoffice.domain.model import SessionRecord
from backoffice.domain.service import IdentityProviderClient, SessionCodec
from backoffice.domain.value import CallbackFailure
from backoffice.util.error import SealError


class CallbackRequest(BaseModel):
    """Callback parameters from the provider redirect, plus the stored state.

    Every provider parameter is optional here: a missing one is a failure
    outcome, not a request validation error.
    """

    code: str | None = Field(default=None, repr=False)
    state: str | None = None
    session_state: str | None = None
    error: str | None = None
    error_description: str | None = None
    stored_state: str | None = None  # From the state cookie


class CallbackResult(BaseModel):
    """Outcome of one login attempt: a sealed session, or a failure code."""

    sealed_session: str | None = Field(default=None, repr=False)
    session_max_age: int = 0
    subject_id: str | None = None
    failure: CallbackFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class CompleteLoginUseCase(BaseUseCase):
    """Use case for turning an authorization callback into a session.

    Order of checks:
    1. A provider ``error`` short-circuits everything else
    2. ``code`` and ``state`` must both be present
    3. ``state`` must equal the stored state; no provider call happens before this
    4. The code is exchanged for tokens
    5. The profile is fetched with the new access token
    6. A session record is built from the profile id and the refresh token, and sealed
    """

    def __init__(
        self,
        identity_provider: IdentityProviderClient,
        session_codec: SessionCodec,
        session_settings: SessionSettings,
    ) -> None:
        """Initialize complete login use case.

        Args:
            identity_provider: Identity provider client
            session_codec: Session sealing service
            session_settings: Session settings
        """
        self.identity_provider = identity_provider
        self.session_codec = session_codec
        self.session_settings = session_settings

    async def execute(self, request: CallbackRequest) -> CallbackResult:
        """Execute the callback state machine.

        Args:
            request: Callback parameters and stored state

        Returns:
            Success with the sealed session, or exactly one failure code
        """
        with logfire.span("complete_login"):
            try:
                code = self._validate(request)
                tokens = await self.identity_provider.exchange_authorization_code(code)
                profile = await self.identity_provider.fetch_profile(tokens.access_token)

                record = SessionRecord.from_tokens(
                    profile.id,
                    tokens,
                    retain_id_token=self.session_settings.retain_id_token,
                )
                sealed = self.session_codec.seal(record)
            except ProviderReportedError as e:
                logfire.warn(
                    "Provider reported login error",
                    error=e.error,
                    description=e.description,
                )
                return CallbackResult(failure=CallbackFailure.PROVIDER_ERROR)
            except MissingParametersError as e:
                logfire.warn("Login callback missing parameters", error=str(e))
                return CallbackResult(failure=CallbackFailure.MISSING_PARAMETERS)
            except CsrfMismatchError as e:
                logfire.warn("Login callback state rejected", error=str(e))
                return CallbackResult(failure=CallbackFailure.CSRF_MISMATCH)
            except TokenExchangeError as e:
                logfire.error(
                    "Authorization code exchange failed",
                    status_code=e.status_code,
                    provider_error=e.provider_error,
                )
                return CallbackResult(failure=CallbackFailure.TOKEN_EXCHANGE_FAILED)
            except ProfileFetchError as e:
                logfire.error(
                    "Profile fetch failed during login",
                    status_code=e.status_code,
                    provider_error=e.provider_error,
                )
                return CallbackResult(failure=CallbackFailure.PROFILE_FETCH_FAILED)
            except SealError as e:
                logfire.error("Session could not be sealed", error=str(e))
                return CallbackResult(failure=CallbackFailure.AUTHENTICATION_FAILED)

            logfire.info("Login completed", subject_id=record.subject_id)
            return CallbackResult(
                sealed_session=sealed,
                session_max_age=record.seconds_remaining(),
                subject_id=record.subject_id,
            )

    def _validate(self, request: CallbackRequest) -> str:
        """Check the callback before any provider call.

        Returns:
            The authorization code

        Raises:
            ProviderReportedError: If the provider sent an ``error``
            MissingParametersError: If ``code`` or ``state`` is missing
            CsrfMismatchError: If there is no stored state or it differs
        """
        if request.error:
            raise ProviderReportedError(request.error, request.error_description)

        if not request.code or not request.state:
            raise MissingParametersError(
                f"code present={bool(request.code)}, state present={bool(request.state)}"
            )

        if not request.stored_state:
            raise CsrfMismatchError("No stored state for this callback")

        if not secrets.compare_digest(
            request.stored_state.encode("utf-8"), request.state.encode("utf-8")
        ):
            raise CsrfMismatchError("Callback state does not match stored state")

        return request.code
