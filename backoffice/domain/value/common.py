"""Base class for value objects."""

from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Base class for all value objects.

    Value objects are immutable and compared by value, not identity.
    Provider payloads often carry extra keys, which are ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )
