"""Authentication routes."""

import logging
from datetime import datetime
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from backoffice.application.usecase.auth import (
    BeginLoginUseCase,
    CompleteLoginUseCase,
    LogoutUseCase,
)
from backoffice.application.usecase.auth.complete_login import CallbackRequest
from backoffice.application.usecase.auth.logout import LogoutRequest
from backoffice.application.usecase.auth.resolve_session import SessionResolution
from backoffice.config import Settings
from backoffice.domain.value import AuthenticatedProfile, CallbackFailure, ProviderProfile
from backoffice.interface.api.cookies import SessionCookieStore, StateCookieStore
from backoffice.interface.api.dependencies import current_profile, current_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)


class LogoutResponse(BaseModel):
    """Logout response. The caller navigates to ``logout_url``."""

    logout_url: str


class SessionResponse(BaseModel):
    """Current session with the access token minted for this request."""

    authenticated: bool
    user: ProviderProfile
    access_token: str
    access_token_expires_at: datetime
    session_expires_at: datetime | None


@router.get("/login")
async def login(
    begin_login: FromDishka[BeginLoginUseCase],
    state_cookies: FromDishka[StateCookieStore],
) -> RedirectResponse:
    """Start an OIDC login.

    Stores a fresh CSRF nonce in the state cookie and redirects the browser
    to the identity provider.

    Example:
        GET /auth/login

        Redirects to: https://id.example.com/realms/backoffice/protocol/openid-connect/auth?...
        Sets cookie: oauth_state (10 minutes)
    """
    result = await begin_login.execute()

    response = RedirectResponse(
        url=result.authorization_url, status_code=status.HTTP_302_FOUND
    )
    state_cookies.write(response, result.state)
    return response


@router.get("/callback")
async def callback(
    request: Request,
    complete_login: FromDishka[CompleteLoginUseCase],
    session_cookies: FromDishka[SessionCookieStore],
    state_cookies: FromDishka[StateCookieStore],
    settings: FromDishka[Settings],
    code: str | None = None,
    state: str | None = None,
    session_state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
) -> RedirectResponse:
    """Handle the identity provider redirect and complete login.

    Example:
        GET /auth/callback?code=abc&state=xyz&session_state=...

        Success: redirects to {app}/dashboard and sets the session cookie
        Failure: redirects to {app}/login?error=<code>
    """
    return await _handle_oauth_callback(
        CallbackRequest(
            code=code,
            state=state,
            session_state=session_state,
            error=error,
            error_description=error_description,
            stored_state=state_cookies.read(request),
        ),
        complete_login=complete_login,
        session_cookies=session_cookies,
        state_cookies=state_cookies,
        settings=settings,
    )


@router.get("/callback/keycloak")
async def keycloak_callback(
    request: Request,
    complete_login: FromDishka[CompleteLoginUseCase],
    session_cookies: FromDishka[SessionCookieStore],
    state_cookies: FromDishka[StateCookieStore],
    settings: FromDishka[Settings],
    code: str | None = None,
    state: str | None = None,
    session_state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
) -> RedirectResponse:
    """Provider-specific callback path kept for existing client registrations."""
    return await _handle_oauth_callback(
        CallbackRequest(
            code=code,
            state=state,
            session_state=session_state,
            error=error,
            error_description=error_description,
            stored_state=state_cookies.read(request),
        ),
        complete_login=complete_login,
        session_cookies=session_cookies,
        state_cookies=state_cookies,
        settings=settings,
    )


async def _handle_oauth_callback(
    callback_request: CallbackRequest,
    complete_login: CompleteLoginUseCase,
    session_cookies: SessionCookieStore,
    state_cookies: StateCookieStore,
    settings: Settings,
) -> RedirectResponse:
    """Shared callback handler.

    The state cookie is deleted on every outcome: it is good for exactly one
    comparison.
    """
    logger.info(
        f"OAuth callback received: has_code={callback_request.code is not None}, "
        f"has_state={callback_request.state is not None}, "
        f"has_stored_state={callback_request.stored_state is not None}, "
        f"error={callback_request.error}"
    )

    try:
        result = await complete_login.execute(callback_request)
    except Exception as e:
        logger.exception(f"Unexpected error during OAuth callback: {type(e).__name__}")
        return _login_error_redirect(
            settings, CallbackFailure.AUTHENTICATION_FAILED, state_cookies
        )

    if not result.ok or result.sealed_session is None:
        failure = result.failure or CallbackFailure.AUTHENTICATION_FAILED
        logger.warning(f"OAuth callback rejected: {failure.value}")
        return _login_error_redirect(settings, failure, state_cookies)

    response = RedirectResponse(
        url=f"{settings.api.app_url}/dashboard",
        status_code=status.HTTP_302_FOUND,
    )
    session_cookies.write(response, result.sealed_session, result.session_max_age)
    state_cookies.clear(response)

    logger.info(
        f"Session cookie set: subject={result.subject_id}, "
        f"secure={session_cookies.secure}, max_age={result.session_max_age}"
    )
    return response


def _login_error_redirect(
    settings: Settings, failure: CallbackFailure, state_cookies: StateCookieStore
) -> RedirectResponse:
    """Redirect to the login page with an opaque error code."""
    response = RedirectResponse(
        url=f"{settings.api.app_url}/login?{urlencode({'error': failure.value})}",
        status_code=status.HTTP_302_FOUND,
    )
    state_cookies.clear(response)
    return response


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    logout_use_case: FromDishka[LogoutUseCase],
    session_cookies: FromDishka[SessionCookieStore],
) -> LogoutResponse:
    """Clear the session cookie and return the provider logout URL.

    Works with no session, or with an unreadable one.

    Example:
        POST /auth/logout

        Response:
        {
            "logout_url": "https://id.example.com/.../logout?post_logout_redirect_uri=..."
        }
    """
    result = await logout_use_case.execute(
        LogoutRequest(sealed_session=session_cookies.read(request))
    )

    session_cookies.clear(response)
    logger.info(f"Logout: had_session={result.had_session}")
    return LogoutResponse(logout_url=result.logout_url)


@router.get("/logout")
async def logout_redirect(
    request: Request,
    logout_use_case: FromDishka[LogoutUseCase],
    session_cookies: FromDishka[SessionCookieStore],
) -> RedirectResponse:
    """Clear the session cookie and redirect straight to the provider logout page."""
    result = await logout_use_case.execute(
        LogoutRequest(sealed_session=session_cookies.read(request))
    )

    response = RedirectResponse(url=result.logout_url, status_code=status.HTTP_302_FOUND)
    session_cookies.clear(response)
    return response


@router.get("/me", response_model=ProviderProfile)
@router.get("/user", response_model=ProviderProfile)
async def get_current_user(
    profile: AuthenticatedProfile = Depends(current_profile),
) -> ProviderProfile:
    """Return the current user, or 401 when not authenticated.

    This is the authentication check used by the rest of the application.
    Also served at ``/auth/user`` for frontends built against that path.
    The access token is not part of this response.

    Example:
        {
            "id": "42",
            "username": "jane.doe",
            "email": "jane@example.com",
            "authorities": ["ROLE_ADMIN", "CAP_VEHICLE_READ"],
            ...
        }
    """
    return profile.public_profile()


@router.get("/session", response_model=SessionResponse)
async def get_session(
    resolution: SessionResolution = Depends(current_session),
) -> SessionResponse:
    """Return the current user together with a freshly minted access token.

    For server-side consumers that call the back-office API on the user's
    behalf. Returns 401 when not authenticated.
    """
    profile = resolution.profile
    return SessionResponse(
        authenticated=True,
        user=profile.public_profile(),
        access_token=profile.access_token,
        access_token_expires_at=profile.access_token_expires_at,
        session_expires_at=resolution.session_expires_at,
    )
