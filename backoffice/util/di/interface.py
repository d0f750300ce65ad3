"""Interface layer DI providers."""

from dishka import Scope, provide

from backoffice.config import Settings
from backoffice.interface.api.cookies import SessionCookieStore, StateCookieStore
from backoffice.util.di.base import ProviderBase


class ProdInterfaceProvider(ProviderBase):
    """Cookie stores for the HTTP interface - concrete, no mocks needed."""

    scope = Scope.APP

    @provide
    def get_session_cookie_store(self, settings: Settings) -> SessionCookieStore:
        """Provide the session cookie store."""
        return SessionCookieStore(settings)

    @provide
    def get_state_cookie_store(self, settings: Settings) -> StateCookieStore:
        """Provide the login state cookie store."""
        return StateCookieStore(settings)
