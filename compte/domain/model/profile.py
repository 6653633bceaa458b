"""Profile document.

One document per account, keyed by the provider-issued account id.
Created on the first successful reconciliation and merged on every
later one; never deleted here (account closure is handled elsewhere).
"""

from datetime import datetime

from compte.domain.model.common import DomainModel
from compte.domain.value import AccountId, UsageMode


class Profile(DomainModel):
    """Persisted profile of one logical account."""

    account_id: AccountId
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    usage_mode: UsageMode = UsageMode.UNSET
    created_at: datetime  # Set once, immutable thereafter
    updated_at: datetime  # Set on every reconciliation
