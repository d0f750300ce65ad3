"""Domain layer errors.

Authentication failures raised by the codec and the identity-provider
adapter. Use cases catch them and turn them into ``CallbackFailure`` /
``SessionFailure`` codes; none of them is fatal to the process.
"""


class DomainError(Exception):
    """Base domain error."""

    pass


class AuthError(DomainError):
    """Base class for session and authentication failures."""

    pass


class MissingParametersError(AuthError):
    """The callback did not carry both ``code`` and ``state``."""

    pass


class CsrfMismatchError(AuthError):
    """The callback ``state`` is absent from, or differs from, the stored state."""

    pass


class ProviderReportedError(AuthError):
    """The identity provider redirected back with an ``error`` parameter."""

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        super().__init__(f"Provider reported error: {error}")


class ProviderCallError(AuthError):
    """Base for failed calls to the identity provider.

    Attributes:
        status_code: HTTP status of the provider response, if one was received
        provider_error: ``error`` / ``error_description`` or raw body from the
            provider, for server-side logs only
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider_error: str | None = None,
    ):
        self.status_code = status_code
        self.provider_error = provider_error
        super().__init__(message)


class TokenExchangeError(ProviderCallError):
    """The authorization code could not be exchanged for tokens."""

    pass


class RefreshError(ProviderCallError):
    """The refresh token was rejected; the session must be re-established."""

    pass


class ProfileFetchError(ProviderCallError):
    """The subject profile could not be fetched."""

    pass


class InvalidSessionError(AuthError):
    """The session cookie could not be unsealed (malformed, tampered or expired)."""

    pass


class UnauthenticatedError(AuthError):
    """The caller has no usable session.

    Attributes:
        clear_cookie: Whether the response should delete the session cookie
    """

    def __init__(self, clear_cookie: bool = False):
        self.clear_cookie = clear_cookie
        super().__init__("Not authenticated")
