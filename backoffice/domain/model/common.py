"""Base model for all domain entities."""

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Base class for all domain models.

    Domain models are immutable: a changed model is a new instance.
    """

    model_config = ConfigDict(frozen=True)
