"""Unit tests for CompleteLoginUseCase."""

import pytest

from backoffice.adapter.oidc import MockOidcClient
from backoffice.application.usecase.auth import CompleteLoginUseCase
from backoffice.application.usecase.auth.complete_login import CallbackRequest
from backoffice.domain.service import IdentityProviderClient, SessionCodec
from backoffice.domain.value import CallbackFailure
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class TestCompleteLoginUseCase:
    """Tests for CompleteLoginUseCase."""

    @pytest.mark.asyncio
    async def test_successful_callback_creates_session(self, unit_env):
        """A matching state and valid code produce a sealed session for the profile id."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        codec = await unit_env.get(SessionCodec)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)

        # Act
        result = await use_case.execute(
            CallbackRequest(code="abc", state="xyz", stored_state="xyz")
        )

        # Assert
        assert result.ok
        assert result.subject_id == "42"
        assert result.session_max_age > 0
        assert provider.calls == ["exchange_authorization_code", "fetch_profile"]

        record = codec.unseal(result.sealed_session)
        assert record.subject_id == "42"
        assert record.refresh_token == "mock-refresh-token"
        assert record.id_token == "mock-id-token"

    @pytest.mark.asyncio
    async def test_provider_error_short_circuits(self, unit_env):
        """A provider error wins over everything else and calls nothing."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)

        # Act
        result = await use_case.execute(
            CallbackRequest(
                code="abc",
                state="xyz",
                stored_state="xyz",
                error="access_denied",
                error_description="User cancelled",
            )
        )

        # Assert
        assert result.failure == CallbackFailure.PROVIDER_ERROR
        assert result.sealed_session is None
        assert provider.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code,state",
        [(None, "xyz"), ("abc", None), (None, None), ("", "xyz")],
    )
    async def test_missing_parameters(self, unit_env, code, state):
        """Both code and state are required."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)

        # Act
        result = await use_case.execute(
            CallbackRequest(code=code, state=state, stored_state="xyz")
        )

        # Assert
        assert result.failure == CallbackFailure.MISSING_PARAMETERS
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_state_mismatch_never_calls_provider(self, unit_env):
        """A forged callback is rejected before the code is exchanged."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)

        # Act
        result = await use_case.execute(
            CallbackRequest(code="abc", state="attacker", stored_state="xyz")
        )

        # Assert
        assert result.failure == CallbackFailure.CSRF_MISMATCH
        assert result.failure.value == "invalid_state"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_stored_state_is_mismatch(self, unit_env):
        """Without a state cookie the callback cannot be trusted."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)

        # Act
        result = await use_case.execute(CallbackRequest(code="abc", state="xyz"))

        # Assert
        assert result.failure == CallbackFailure.CSRF_MISMATCH
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_token_exchange_failure(self, unit_env):
        """A rejected code produces TOKEN_EXCHANGE_FAILED and no profile fetch."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)
        provider.fail_exchange = True

        # Act
        result = await use_case.execute(
            CallbackRequest(code="abc", state="xyz", stored_state="xyz")
        )

        # Assert
        assert result.failure == CallbackFailure.TOKEN_EXCHANGE_FAILED
        assert provider.calls == ["exchange_authorization_code"]

    @pytest.mark.asyncio
    async def test_profile_fetch_failure(self, unit_env):
        """A failed profile fetch produces PROFILE_FETCH_FAILED and no session."""
        # Arrange
        use_case = await unit_env.get(CompleteLoginUseCase)
        provider: MockOidcClient = await unit_env.get(IdentityProviderClient)
        provider.fail_profile = True

        # Act
        result = await use_case.execute(
            CallbackRequest(code="abc", state="xyz", stored_state="xyz")
        )

        # Assert
        assert result.failure == CallbackFailure.PROFILE_FETCH_FAILED
        assert result.sealed_session is None
