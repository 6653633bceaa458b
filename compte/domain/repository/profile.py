"""Profile repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from compte.domain.model.profile import Profile
from compte.domain.value import AccountId, UsageMode


class ProfileRepository(ABC):
    """Repository for profile documents.

    Backed by a document-style store: one document per account id, written
    with merge semantics. Implementations translate store failures into
    TransientError / PermissionDeniedError.
    """

    @abstractmethod
    async def find_by_account_id(self, account_id: AccountId) -> Optional[Profile]:
        """Read the profile document for an account.

        Args:
            account_id: Provider-issued account id

        Returns:
            The profile if stored, None otherwise (absence is not an error)

        Raises:
            TransientError: Store temporarily unreachable
            PermissionDeniedError: Read rejected by policy
        """
        pass

    @abstractmethod
    async def merge(self, account_id: AccountId, fields: dict[str, Any]) -> Profile:
        """Merge-write named fields into the profile document.

        Creates the document when absent. Fields not named are left untouched.
        Two fields are guarded by the store itself, so writers that raced on
        a stale read cannot undo each other:

        - ``created_at`` is only written when the document is created
        - ``usage_mode`` only replaces a stored ``unset``

        Args:
            account_id: Provider-issued account id
            fields: Profile field names to values

        Returns:
            The profile as stored after the write

        Raises:
            TransientError: Store temporarily unreachable
            PermissionDeniedError: Write rejected by policy
        """
        pass

    @abstractmethod
    async def replace_usage_mode(
        self, account_id: AccountId, usage_mode: UsageMode, updated_at: datetime
    ) -> Optional[Profile]:
        """Overwrite the usage mode of an existing profile.

        Only for an explicit choice by the user; sign-in goes through merge.

        Args:
            account_id: Provider-issued account id
            usage_mode: New mode
            updated_at: Timestamp of the change

        Returns:
            The updated profile, None if no profile is stored

        Raises:
            TransientError: Store temporarily unreachable
            PermissionDeniedError: Write rejected by policy
        """
        pass
