"""Test configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone

import logfire
import pytest

# Must be set before any Settings() is built
os.environ.setdefault("ENVIRONMENT", "test")

from backoffice.domain.model import SessionRecord  # noqa: E402
from backoffice.domain.service import SessionCodec  # noqa: E402

TEST_SECRET = "test-secret-for-sealing-session-cookies-0123456789"

# Console-only, nothing is sent anywhere
logfire.configure(send_to_logfire=False, console=False)


def make_record(
    subject_id: str = "42",
    refresh_token: str = "mock-refresh-token",
    lifetime: timedelta = timedelta(hours=8),
    id_token: str | None = "mock-id-token",
) -> SessionRecord:
    """Helper to build a session record expiring ``lifetime`` from now."""
    return SessionRecord(
        subject_id=subject_id,
        refresh_token=refresh_token,
        refresh_token_expires_at=datetime.now(timezone.utc) + lifetime,
        id_token=id_token,
    )


@pytest.fixture
def codec() -> SessionCodec:
    """Session codec with a fixed test secret."""
    return SessionCodec(secret=TEST_SECRET)
