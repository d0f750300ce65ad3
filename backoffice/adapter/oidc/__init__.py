"""OpenID Connect identity provider adapter."""

from .client import (
    MockOidcClient,
    OidcClient,
    RealOidcClient,
)

__all__ = ["OidcClient", "RealOidcClient", "MockOidcClient"]
