"""Mock providers for testing."""

from .oidc import MockOidcProvider
from .container import build_test_container

__all__ = [
    "MockOidcProvider",
    "build_test_container",
]
