"""Domain services."""

from .base import Service
from .identity_provider import IdentityProviderClient
from .session_codec import SessionCodec

__all__ = [
    "IdentityProviderClient",
    "Service",
    "SessionCodec",
]
