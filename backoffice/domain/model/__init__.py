"""Domain models for the back-office session subsystem."""

from backoffice.domain.model.session import SessionRecord

__all__ = ["SessionRecord"]
