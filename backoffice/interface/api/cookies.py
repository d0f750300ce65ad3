"""Cookie-backed session storage.

The server keeps no session table: the sealed session lives in an HttpOnly
cookie and the login CSRF nonce in a short-lived state cookie. Both stores
only move opaque strings in and out of cookies with a fixed security
posture; they never look inside the values.
"""

from fastapi import Request, Response

from backoffice.config import Settings


class _CookieStore:
    """Get/set/delete for one cookie with HttpOnly, SameSite=Lax and Path=/."""

    def __init__(self, name: str, secure: bool, domain: str | None) -> None:
        self.name = name
        self.secure = secure
        self.domain = domain

    def read(self, request: Request) -> str | None:
        """Return the cookie value, or None when absent or empty."""
        return request.cookies.get(self.name) or None

    def _set(self, response: Response, value: str, max_age: int) -> None:
        response.set_cookie(
            key=self.name,
            value=value,
            max_age=max_age,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )

    def clear(self, response: Response) -> None:
        """Delete the cookie. A no-op for the browser when it was never set."""
        response.delete_cookie(
            key=self.name,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )


class SessionCookieStore(_CookieStore):
    """Session cookie holding the sealed session record.

    Max-Age follows the refresh token lifetime, not the access token's:
    the refresh token is the only thing the cookie is needed for.
    """

    def __init__(self, settings: Settings) -> None:
        super().__init__(
            name=settings.session.cookie_name,
            secure=settings.cookie_secure,
            domain=settings.session.cookie_domain,
        )

    def write(self, response: Response, sealed_session: str, max_age: int) -> None:
        """Issue the session cookie.

        Args:
            response: Outgoing response
            sealed_session: Sealed session value
            max_age: Remaining refresh token lifetime in seconds
        """
        self._set(response, sealed_session, max_age)


class StateCookieStore(_CookieStore):
    """Single-use cookie holding the CSRF nonce of a pending login."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(
            name=settings.session.state_cookie_name,
            secure=settings.cookie_secure,
            domain=settings.session.cookie_domain,
        )
        self.max_age = settings.session.state_max_age_seconds

    def write(self, response: Response, state: str) -> None:
        """Remember the state nonce until the provider redirects back."""
        self._set(response, state, self.max_age)
