"""Domain value objects for the back-office session subsystem."""

from backoffice.domain.value.types import (
    AuthenticatedProfile,
    CallbackFailure,
    ProviderProfile,
    SessionFailure,
    TokenSet,
)

__all__ = [
    "AuthenticatedProfile",
    "CallbackFailure",
    "ProviderProfile",
    "SessionFailure",
    "TokenSet",
]
