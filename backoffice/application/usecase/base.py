"""Base use case."""

from abc import ABC, abstractmethod
from typing import Any


class BaseUseCase(ABC):
    """Base use case for the authentication flows.

    Use cases catch domain errors and return result values; only
    unexpected exceptions propagate to the route.
    """

    @abstractmethod
    async def execute(self, request: Any) -> Any:
        """Run the use case for one request."""
