"""FastAPI application."""

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.config import Settings
from backoffice.interface.api.errors import register_error_handlers
from backoffice.interface.api.routes import auth, health
from backoffice.util.di.container import create_container, setup_di
from backoffice.util.observability import (
    instrument_fastapi,
    instrument_httpx,
)


def create_app(container: AsyncContainer | None = None) -> FastAPI:
    """Create FastAPI application.

    Note: Logfire should be configured before calling this function.
    In production, start_app.py handles this.

    Args:
        container: DI container to use. Defaults to the production container;
            tests pass one built from mock providers.
    """
    settings = Settings()

    # Logfire must be configured before instrumentation
    instrument_httpx()

    app_instance = FastAPI(
        title="Back-office Auth API",
        description="Browser session layer between the back-office frontend and the OpenID Connect identity provider",
        version="0.1.0",
    )

    instrument_fastapi(app_instance)

    # Credentialed requests from the frontend carry the session cookie
    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=[
            settings.api.app_url,
            "http://localhost:3000",  # Local development
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Accept",
            "Origin",
            "User-Agent",
            "Cache-Control",
            "X-Requested-With",
        ],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=600,
    )

    if container is None:
        container = create_container()
    setup_di(app_instance, container)

    register_error_handlers(app_instance)

    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)

    return app_instance
