"""Domain layer DI providers."""

import logfire
from dishka import Scope, provide

from backoffice.config import DEFAULT_SESSION_SECRET, Settings
from backoffice.domain.service import SessionCodec
from backoffice.util.di.base import ProviderBase
from backoffice.util.error import ConfigurationError
from backoffice.util.seal import MIN_SECRET_LENGTH


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    The codec holds no per-request state, so it lives for the whole app.
    """

    scope = Scope.APP

    @provide
    def get_session_codec(self, settings: Settings) -> SessionCodec:
        """Provide the session sealing service.

        Raises:
            ConfigurationError: If a deployed environment runs with the
                default or a too-short session secret
        """
        secret = settings.session.secret
        weak = secret == DEFAULT_SESSION_SECRET or len(secret) < MIN_SECRET_LENGTH
        if weak:
            if settings.environment in ("staging", "production"):
                raise ConfigurationError(
                    f"SESSION__SECRET must be set to at least {MIN_SECRET_LENGTH} characters"
                )
            logfire.warn(
                "Using default or short session secret",
                environment=settings.environment,
            )
        return SessionCodec(secret=secret)
