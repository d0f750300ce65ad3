"""Session record sealed into the session cookie.

Only what is needed to mint new access tokens is kept: the subject, the
refresh token and its expiry, and optionally the ID token for single
logout. Access tokens and profile data are fetched again on every request.
"""

from datetime import datetime, timezone

from pydantic import Field

from backoffice.domain.model.common import DomainModel
from backoffice.domain.value import TokenSet


class SessionRecord(DomainModel):
    """Durable session state held by the browser inside the sealed cookie."""

    subject_id: str
    refresh_token: str = Field(repr=False)
    refresh_token_expires_at: datetime
    id_token: str | None = Field(default=None, repr=False)

    @classmethod
    def from_tokens(
        cls, subject_id: str, tokens: TokenSet, retain_id_token: bool = True
    ) -> "SessionRecord":
        """Build a record from a provider token response."""
        return cls(
            subject_id=subject_id,
            refresh_token=tokens.refresh_token,
            refresh_token_expires_at=tokens.refresh_token_expires_at,
            id_token=tokens.id_token if retain_id_token else None,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the refresh token lifetime has elapsed."""
        now = now or datetime.now(timezone.utc)
        return self.refresh_token_expires_at <= now

    def seconds_remaining(self, now: datetime | None = None) -> int:
        """Remaining lifetime in whole seconds, used as the cookie Max-Age."""
        now = now or datetime.now(timezone.utc)
        return max(0, int((self.refresh_token_expires_at - now).total_seconds()))

    def rotated(self, tokens: TokenSet) -> "SessionRecord":
        """Record carrying a refresh token newly issued by the provider.

        A retained ID token is replaced when the refresh response carries a
        new one; a record without one stays without.
        """
        id_token = None
        if self.id_token is not None:
            id_token = tokens.id_token or self.id_token

        return SessionRecord(
            subject_id=self.subject_id,
            refresh_token=tokens.refresh_token,
            refresh_token_expires_at=tokens.refresh_token_expires_at,
            id_token=id_token,
        )

    def without_id_token(self) -> "SessionRecord":
        """Same record with the ID token dropped."""
        return self.model_copy(update={"id_token": None})
