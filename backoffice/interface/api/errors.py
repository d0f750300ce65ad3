"""Error handlers for the HTTP interface."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backoffice.domain.error import UnauthenticatedError
from backoffice.interface.api.cookies import SessionCookieStore

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers.

    Every session failure becomes the same 401 body, whatever the reason,
    so a tampered cookie cannot be told apart from a missing one.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(
        request: Request, exc: UnauthenticatedError
    ) -> JSONResponse:
        logger.debug(f"Unauthenticated request: path={request.url.path}")
        response = JSONResponse(
            status_code=401,
            content={"detail": "Not authenticated"},
        )
        if exc.clear_cookie:
            session_cookies = await request.state.dishka_container.get(
                SessionCookieStore
            )
            session_cookies.clear(response)
        return response
