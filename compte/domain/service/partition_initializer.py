"""Partition initialization domain service."""

from dataclasses import dataclass

import logfire

from compte.domain.error import IdentityCoreError
from compte.domain.model.partition import PartitionMarker
from compte.domain.repository.partition import PartitionRepository
from compte.domain.value import AccountId, ErrorKind, PartitionName, UsageMode

from .base import Service


@dataclass
class PartitionOutcome:
    """Result of one marker write."""

    partition: PartitionName
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> ErrorKind | None:
        if self.error is None:
            return None
        if isinstance(self.error, IdentityCoreError):
            return self.error.kind
        return ErrorKind.UNEXPECTED


class PartitionInitializer(Service):
    """Provisions the usage-mode partitions of a new account.

    Best effort: partition existence is an optimization, and the first real
    write into a partition completes it implicitly. Each marker write is
    isolated so one failure never prevents the others.
    """

    def __init__(self, partition_repository: PartitionRepository) -> None:
        """Initialize partition initializer.

        Args:
            partition_repository: Partition marker repository
        """
        self.partition_repository = partition_repository

    async def initialize_partitions(
        self,
        account_id: AccountId,
        usage_mode: UsageMode,
        partitions: tuple[PartitionName, ...] | None = None,
    ) -> list[PartitionOutcome]:
        """Write one idempotent marker per partition implied by the mode.

        Never raises for a failed marker write; failures are logged and
        reported in the returned outcomes.

        Args:
            account_id: Provider-issued account id
            usage_mode: Resolved usage mode of the account
            partitions: Explicit subset to write (defaults to every partition
                the mode implies)

        Returns:
            One outcome per attempted partition, in order
        """
        targets = usage_mode.partitions if partitions is None else partitions
        with logfire.span(
            "partition_initializer.initialize_partitions",
            account_id=account_id,
            usage_mode=usage_mode.value,
            partitions=[p.value for p in targets],
        ):
            outcomes = [await self._write_marker(account_id, p) for p in targets]
            failed = [o.partition.value for o in outcomes if not o.ok]
            logfire.info(
                "Partitions initialized",
                account_id=account_id,
                initialized=len(outcomes) - len(failed),
                failed=failed,
            )
            return outcomes

    async def _write_marker(
        self, account_id: AccountId, partition: PartitionName
    ) -> PartitionOutcome:
        marker = PartitionMarker(account_id=account_id, partition=partition)
        try:
            await self.partition_repository.mark(marker)
        except Exception as e:
            # Left for the first data write into the partition to complete
            logfire.warn(
                "Partition marker write failed",
                account_id=account_id,
                partition=partition.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return PartitionOutcome(partition=partition, error=e)
        return PartitionOutcome(partition=partition)
