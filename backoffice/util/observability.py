"""Observability configuration using Logfire.

Usage:
    import logfire

    logfire.info("Session resolved", subject_id=profile.id)

    with logfire.span("oidc.refresh"):
        ...

Never pass tokens, authorization codes or cookie values as attributes.
"""

import logfire
from fastapi import FastAPI

from backoffice.config import Settings

# Requests whose URL carries the authorization code and state
UNINSTRUMENTED_URLS = "/auth/callback"

# Endpoint arguments that are single-use secrets
_REDACTED_ARGUMENTS = frozenset({"code", "state", "session_state"})


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire for observability.

    Sends to Logfire cloud when explicitly enabled, or when a token is
    present and ``send_to_logfire`` is unset. Otherwise console only.

    Args:
        settings: Application settings
    """
    if settings.observability.send_to_logfire is not None:
        send_to_logfire = settings.observability.send_to_logfire
    elif settings.observability.logfire_token:
        send_to_logfire = True
    else:
        send_to_logfire = False

    config_kwargs = {
        "service_name": "backoffice-auth",
        "service_version": "0.1.0",
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
        "scrubbing": logfire.ScrubbingOptions(
            extra_patterns=["refresh_token", "id_token", "access_token"]
        ),
    }

    if settings.observability.logfire_token:
        config_kwargs["token"] = settings.observability.logfire_token

    logfire.configure(**config_kwargs)

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        debug=settings.debug,
        send_to_logfire=send_to_logfire,
        has_token=bool(settings.observability.logfire_token),
    )


def map_request_attributes(request, attributes):
    """Add request details to the captured endpoint arguments, masking secrets."""
    result = dict(attributes)
    values = result.get("values")
    if values:
        result["values"] = {
            key: "[REDACTED]" if key in _REDACTED_ARGUMENTS else value
            for key, value in values.items()
        }
    if hasattr(request, "method"):
        result["method"] = request.method
    if hasattr(request, "url"):
        result["path"] = request.url.path
    if hasattr(request, "client") and request.client:
        result["client_host"] = request.client.host
    return result


def instrument_fastapi(app: FastAPI) -> None:
    """Instrument FastAPI application with Logfire.

    Headers are not captured: the session and state cookies travel in them.
    The OAuth callback is not traced at all, since its URL carries the
    authorization code; the login use case records its own span instead.

    Args:
        app: FastAPI application instance
    """
    logfire.instrument_fastapi(
        app,
        capture_headers=False,
        request_attributes_mapper=map_request_attributes,
        excluded_urls=UNINSTRUMENTED_URLS,
    )
    logfire.info("FastAPI instrumented")


def instrument_httpx() -> None:
    """Instrument httpx client with Logfire.

    Traces every outbound call to the identity provider, including latency
    and failures.
    """
    logfire.instrument_httpx()
    logfire.info("httpx instrumented")
