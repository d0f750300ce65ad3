"""Infrastructure providers."""

# Import bases
from .oidc import OidcProvider

# Import implementations (needed for __subclasses__())
from .oidc import ProdOidcProvider  # noqa: F401

__all__ = [
    "OidcProvider",
    "ProdOidcProvider",
]
