"""Request dependencies for protected routes.

Every protected route depends on ``current_profile`` (or
``current_session``), which is the only authentication check in the
application:

    @router.get("/vehicles")
    async def list_vehicles(
        profile: AuthenticatedProfile = Depends(current_profile),
    ):
        backend.get("/vehicles", token=profile.access_token)

The fresh access token is kept on ``request.state.access_token`` for the
rest of the request and never stored anywhere else.
"""

from fastapi import Depends, Request, Response

from backoffice.application.usecase.auth import ResolveSessionUseCase
from backoffice.application.usecase.auth.resolve_session import (
    ResolveSessionRequest,
    SessionResolution,
)
from backoffice.domain.error import UnauthenticatedError
from backoffice.domain.value import AuthenticatedProfile
from backoffice.interface.api.cookies import SessionCookieStore


async def current_session(request: Request, response: Response) -> SessionResolution:
    """Resolve the caller's session or fail the request with 401.

    Re-issues the session cookie when the provider rotated the refresh token.

    Raises:
        UnauthenticatedError: If the caller has no usable session
    """
    container = request.state.dishka_container
    resolve_session = await container.get(ResolveSessionUseCase)
    session_cookies = await container.get(SessionCookieStore)

    resolution = await resolve_session.execute(
        ResolveSessionRequest(sealed_session=session_cookies.read(request))
    )
    if resolution.profile is None:
        raise UnauthenticatedError(clear_cookie=resolution.clear_cookie)

    if resolution.rotated_session and resolution.session_max_age:
        session_cookies.write(
            response, resolution.rotated_session, resolution.session_max_age
        )

    request.state.profile = resolution.profile
    request.state.access_token = resolution.profile.access_token
    return resolution


async def current_profile(
    resolution: SessionResolution = Depends(current_session),
) -> AuthenticatedProfile:
    """Authenticated profile of the caller, including the fresh access token."""
    if resolution.profile is None:
        raise UnauthenticatedError()
    return resolution.profile
