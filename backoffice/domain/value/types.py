"""Domain value objects for the back-office session subsystem.

Value objects are immutable and defined by their values, not identity.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from backoffice.domain.value.common import ValueObject


class CallbackFailure(str, Enum):
    """Opaque error codes appended to the login redirect after a failed callback.

    The value is what the end user sees in ``/login?error=<code>``.
    """

    PROVIDER_ERROR = "provider_error"
    MISSING_PARAMETERS = "missing_parameters"
    CSRF_MISMATCH = "invalid_state"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    AUTHENTICATION_FAILED = "authentication_failed"


class SessionFailure(str, Enum):
    """Why a request could not be resolved to an authenticated session.

    Kept for logs and for callers that branch on the reason; HTTP responses
    collapse all of them into a single 401.
    """

    NO_SESSION = "no_session"
    INVALID_SESSION = "invalid_session"
    REFRESH_FAILED = "refresh_failed"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"


class TokenSet(ValueObject):
    """Tokens issued by the identity provider.

    Expiries are absolute UTC timestamps computed when the response was
    received.
    """

    access_token: str = Field(repr=False)
    access_token_expires_at: datetime
    refresh_token: str = Field(repr=False)
    refresh_token_expires_at: datetime
    id_token: str | None = Field(default=None, repr=False)
    token_type: str = "Bearer"
    scope: str | None = None
    session_state: str | None = None


class ProviderProfile(ValueObject):
    """Subject attributes as reported by the provider or the back-office API."""

    id: str
    username: str | None = None
    email: str | None = None
    email_verified: bool = False
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    company_name: str | None = None
    country: str | None = None
    authenticated: bool = True
    authorities: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        """Accept numeric account ids from the back-office API."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Subject id must be present."""
        if not v:
            raise ValueError("Profile id must not be empty")
        return v


class AuthenticatedProfile(ProviderProfile):
    """Profile of the current caller plus the access token minted for this request.

    Rebuilt on every request and never stored.
    """

    access_token: str = Field(repr=False)
    access_token_expires_at: datetime

    @classmethod
    def from_provider(
        cls, profile: ProviderProfile, tokens: TokenSet
    ) -> "AuthenticatedProfile":
        """Attach freshly issued tokens to a provider profile."""
        return cls(
            **profile.model_dump(),
            access_token=tokens.access_token,
            access_token_expires_at=tokens.access_token_expires_at,
        )

    def public_profile(self) -> ProviderProfile:
        """Profile attributes without the access token."""
        return ProviderProfile(
            **self.model_dump(exclude={"access_token", "access_token_expires_at"})
        )
