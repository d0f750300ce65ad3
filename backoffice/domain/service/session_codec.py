"""Session codec domain service."""

from datetime import datetime, timezone

import logfire

from backoffice.domain.error import InvalidSessionError
from backoffice.domain.model import SessionRecord
from backoffice.util.error import SealError
from backoffice.util.seal import seal, unseal

from .base import Service


class SessionCodec(Service):
    """Seals session records into cookie values and opens them again.

    The only trust root of the subsystem: a value that does not unseal
    cleanly is treated as no session at all.
    """

    def __init__(self, secret: str, max_age: int | None = None) -> None:
        """Initialize session codec.

        Args:
            secret: Server-held sealing secret
            max_age: Optional upper bound in seconds on the age of a sealed value
        """
        self._secret = secret
        self._max_age = max_age

    def seal(self, record: SessionRecord) -> str:
        """Seal a session record.

        A record whose ID token pushes it past the cookie size limit is
        sealed again without the ID token; logout then goes without a hint.

        Args:
            record: Session record to seal

        Returns:
            Opaque cookie-safe string

        Raises:
            SealError: If the record cannot be serialized or would not fit in a cookie
        """
        with logfire.span("session_codec.seal", subject_id=record.subject_id):
            try:
                return seal(record, self._secret)
            except SealError as e:
                if record.id_token is None:
                    raise
                logfire.warn(
                    "Sealed session too large, dropping ID token",
                    subject_id=record.subject_id,
                    error=str(e),
                )
                return seal(record.without_id_token(), self._secret)

    def unseal(self, value: str) -> SessionRecord:
        """Unseal a session cookie value.

        Args:
            value: Sealed session value

        Returns:
            The session record

        Raises:
            InvalidSessionError: If the value is malformed, tampered, sealed
                with a different secret, or its refresh token has expired
        """
        with logfire.span("session_codec.unseal"):
            try:
                record = unseal(value, SessionRecord, self._secret, self._max_age)
            except SealError as e:
                logfire.warn("Session unseal failed", error=str(e))
                raise InvalidSessionError(str(e)) from e

            if record.is_expired(datetime.now(timezone.utc)):
                logfire.info("Session expired", subject_id=record.subject_id)
                raise InvalidSessionError("Session has expired")

            return record
