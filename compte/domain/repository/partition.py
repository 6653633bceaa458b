"""Partition marker repository interface."""

from abc import ABC, abstractmethod

from compte.domain.model.partition import PartitionMarker
from compte.domain.value import AccountId


class PartitionRepository(ABC):
    """Repository for partition markers."""

    @abstractmethod
    async def mark(self, marker: PartitionMarker) -> None:
        """Create or reaffirm a partition marker.

        Idempotent: writing the same marker twice leaves one equivalent
        record and raises nothing.

        Args:
            marker: The constant marker to write

        Raises:
            TransientError: Store temporarily unreachable
            PermissionDeniedError: Write rejected by policy
        """
        pass

    @abstractmethod
    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[PartitionMarker]:
        """Get all markers written for an account.

        Args:
            account_id: Provider-issued account id

        Returns:
            List of markers (may be empty)
        """
        pass
