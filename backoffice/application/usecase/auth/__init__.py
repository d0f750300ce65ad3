"""Authentication use cases."""

from .begin_login import BeginLoginUseCase
from .complete_login import CompleteLoginUseCase
from .logout import LogoutUseCase
from .resolve_session import ResolveSessionUseCase

__all__ = [
    "BeginLoginUseCase",
    "CompleteLoginUseCase",
    "LogoutUseCase",
    "ResolveSessionUseCase",
]
