"""Test helpers shared across test modules."""

from datetime import datetime, timedelta, timezone

import jwt

from compte.domain.value import AccountId, IdentityContext

# Long enough for HS256 without key-length warnings
TEST_SIGNING_KEY = "compte-test-signing-key-0123456789abcdef"


def make_id_token(account_id: str) -> str:
    """Build an ID token shaped like the provider's (signature not checked)."""
    return jwt.encode(
        {
            "sub": account_id,
            "user_id": account_id,
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        TEST_SIGNING_KEY,
        algorithm="HS256",
    )


def make_context(account_id: str) -> IdentityContext:
    """IdentityContext for an account with a matching ID token."""
    return IdentityContext(
        account_id=AccountId(account_id), id_token=make_id_token(account_id)
    )


class SteppingClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current
