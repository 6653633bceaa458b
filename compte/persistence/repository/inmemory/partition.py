"""In-memory partition marker repository for testing."""

from compte.domain.model.partition import PartitionMarker
from compte.domain.repository.partition import PartitionRepository
from compte.domain.value import AccountId, PartitionName


class InMemoryPartitionRepository(PartitionRepository):
    """In-memory implementation of PartitionRepository for testing."""

    def __init__(self) -> None:
        self._markers: dict[tuple[AccountId, PartitionName], PartitionMarker] = {}
        self.write_count = 0

    async def mark(self, marker: PartitionMarker) -> None:
        """Create or reaffirm marker."""
        self.write_count += 1
        self._markers[(marker.account_id, marker.partition)] = marker

    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[PartitionMarker]:
        """Find all markers for an account."""
        matches = [m for (acc, _), m in self._markers.items() if acc == account_id]
        matches.sort(key=lambda m: m.partition.value)
        return matches
