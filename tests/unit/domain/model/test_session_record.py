"""Unit tests for SessionRecord."""

from datetime import datetime, timedelta, timezone

from backoffice.domain.model import SessionRecord
from backoffice.domain.value import TokenSet
from tests.conftest import make_record


def _tokens(refresh_token: str = "new-refresh", id_token: str | None = None) -> TokenSet:
    now = datetime.now(timezone.utc)
    return TokenSet(
        access_token="access",
        access_token_expires_at=now + timedelta(minutes=5),
        refresh_token=refresh_token,
        refresh_token_expires_at=now + timedelta(hours=10),
        id_token=id_token,
    )


class TestSessionRecord:
    """Tests for SessionRecord."""

    def test_from_tokens_keeps_only_session_material(self):
        """The access token is never part of the record."""
        tokens = _tokens(id_token="id-token")

        record = SessionRecord.from_tokens("42", tokens)

        assert record.subject_id == "42"
        assert record.refresh_token == "new-refresh"
        assert record.id_token == "id-token"
        assert "access" not in record.model_dump_json()

    def test_from_tokens_without_id_token_retention(self):
        """The ID token is dropped when retention is off."""
        record = SessionRecord.from_tokens(
            "42", _tokens(id_token="id-token"), retain_id_token=False
        )

        assert record.id_token is None

    def test_is_expired(self):
        """Expiry follows the refresh token lifetime."""
        assert make_record(lifetime=timedelta(seconds=-1)).is_expired()
        assert not make_record(lifetime=timedelta(hours=1)).is_expired()

    def test_seconds_remaining(self):
        """Remaining lifetime is never negative."""
        now = datetime.now(timezone.utc)
        record = make_record(lifetime=timedelta(hours=1))

        assert 3590 <= record.seconds_remaining(now) <= 3600
        assert make_record(lifetime=timedelta(seconds=-10)).seconds_remaining() == 0

    def test_rotated_replaces_refresh_token(self):
        """Rotation carries the new refresh token and its expiry."""
        record = make_record(refresh_token="old", id_token="old-id")
        tokens = _tokens(refresh_token="new")

        rotated = record.rotated(tokens)

        assert rotated.subject_id == record.subject_id
        assert rotated.refresh_token == "new"
        assert rotated.refresh_token_expires_at == tokens.refresh_token_expires_at
        assert rotated.id_token == "old-id"

    def test_rotated_updates_retained_id_token(self):
        """A retained ID token is replaced by a newer one."""
        record = make_record(id_token="old-id")

        assert record.rotated(_tokens(id_token="new-id")).id_token == "new-id"

    def test_rotated_does_not_add_id_token(self):
        """A record without an ID token stays without one."""
        record = make_record(id_token=None)

        assert record.rotated(_tokens(id_token="new-id")).id_token is None

    def test_repr_hides_tokens(self):
        """Tokens do not leak through repr."""
        record = make_record(refresh_token="secret-refresh", id_token="secret-id")

        assert "secret-refresh" not in repr(record)
        assert "secret-id" not in repr(record)
