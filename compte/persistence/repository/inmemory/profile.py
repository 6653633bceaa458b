"""In-memory profile repository for testing."""

from datetime import datetime
from typing import Any, Optional

from compte.domain.model.profile import Profile
from compte.domain.repository.profile import ProfileRepository
from compte.domain.value import AccountId, UsageMode


class InMemoryProfileRepository(ProfileRepository):
    """In-memory implementation of ProfileRepository for testing.

    Documents are kept as plain dicts so merge semantics match the real
    store: named fields overwrite, other fields are left alone, and
    ``created_at`` / a chosen ``usage_mode`` survive later merges.
    """

    def __init__(self) -> None:
        self._documents: dict[AccountId, dict[str, Any]] = {}

    async def find_by_account_id(self, account_id: AccountId) -> Optional[Profile]:
        """Find profile by account id."""
        document = self._documents.get(account_id)
        if document is None:
            return None
        return Profile(**document)

    async def merge(self, account_id: AccountId, fields: dict[str, Any]) -> Profile:
        """Merge fields into the document, creating it if needed."""
        document = self._documents.setdefault(account_id, {"account_id": account_id})
        fields = dict(fields)

        if "created_at" in fields:
            document.setdefault("created_at", fields.pop("created_at"))

        stored_mode = document.get("usage_mode", UsageMode.UNSET)
        if "usage_mode" in fields and stored_mode != UsageMode.UNSET:
            fields.pop("usage_mode")

        document.update(fields)
        return Profile(**document)

    async def replace_usage_mode(
        self, account_id: AccountId, usage_mode: UsageMode, updated_at: datetime
    ) -> Optional[Profile]:
        """Overwrite the mode of an existing document."""
        document = self._documents.get(account_id)
        if document is None:
            return None
        document.update(usage_mode=usage_mode, updated_at=updated_at)
        return Profile(**document)

    def raw_document(self, account_id: AccountId) -> dict[str, Any] | None:
        """Stored document as written (copy), for assertions."""
        document = self._documents.get(account_id)
        return dict(document) if document is not None else None
