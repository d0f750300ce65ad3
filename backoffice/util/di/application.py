"""Application layer DI providers."""

from dishka import Scope, provide

from backoffice.application.usecase.auth import (
    BeginLoginUseCase,
    CompleteLoginUseCase,
    LogoutUseCase,
    ResolveSessionUseCase,
)
from backoffice.config import SessionSettings
from backoffice.domain.service import IdentityProviderClient, SessionCodec
from backoffice.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_begin_login_use_case(
        self, identity_provider: IdentityProviderClient
    ) -> BeginLoginUseCase:
        """Provide begin login use case."""
        return BeginLoginUseCase(identity_provider=identity_provider)

    @provide(scope=Scope.REQUEST)
    def get_complete_login_use_case(
        self,
        identity_provider: IdentityProviderClient,
        session_codec: SessionCodec,
        session_settings: SessionSettings,
    ) -> CompleteLoginUseCase:
        """Provide complete login use case."""
        return CompleteLoginUseCase(
            identity_provider=identity_provider,
            session_codec=session_codec,
            session_settings=session_settings,
        )

    @provide(scope=Scope.REQUEST)
    def get_resolve_session_use_case(
        self,
        identity_provider: IdentityProviderClient,
        session_codec: SessionCodec,
    ) -> ResolveSessionUseCase:
        """Provide resolve session use case."""
        return ResolveSessionUseCase(
            identity_provider=identity_provider,
            session_codec=session_codec,
        )

    @provide(scope=Scope.REQUEST)
    def get_logout_use_case(
        self,
        identity_provider: IdentityProviderClient,
        session_codec: SessionCodec,
    ) -> LogoutUseCase:
        """Provide logout use case."""
        return LogoutUseCase(
            identity_provider=identity_provider,
            session_codec=session_codec,
        )
