"""Update usage mode use case."""

from pydantic import BaseModel, field_validator

from compte.application.usecase.base import BaseUseCase
from compte.domain.service import PartitionInitializer, ProfileReconciler
from compte.domain.value import AccountId, UsageMode

from .common import PartitionInfo, ProfileInfo


class UpdateUsageModeRequest(BaseModel):
    """Update usage mode request."""

    account_id: AccountId
    usage_mode: UsageMode

    @field_validator("usage_mode")
    @classmethod
    def check_usage_mode(cls, value: UsageMode) -> UsageMode:
        if not value.is_set:
            raise ValueError("usage_mode must be personal, business or both")
        return value


class UpdateUsageModeResponse(BaseModel):
    """Update usage mode response."""

    profile: ProfileInfo
    previous_usage_mode: UsageMode
    partitions: list[PartitionInfo]


class UpdateUsageModeUseCase(BaseUseCase):
    """Use case for an explicit usage-mode change from settings."""

    def __init__(
        self,
        profile_reconciler: ProfileReconciler,
        partition_initializer: PartitionInitializer,
    ) -> None:
        """Initialize update usage mode use case.

        Args:
            profile_reconciler: Profile reconciliation domain service
            partition_initializer: Partition initialization domain service
        """
        self.profile_reconciler = profile_reconciler
        self.partition_initializer = partition_initializer

    async def execute(self, request: UpdateUsageModeRequest) -> UpdateUsageModeResponse:
        """Execute usage mode change.

        Steps:
        1. Store the new mode (replacing any earlier choice)
        2. Initialize partitions the new mode implies and the old one did not

        Existing partitions are never removed; switching from business to
        personal leaves the business data in place.

        Raises:
            NotFoundError: No profile stored for the account
        """
        profile, previous = await self.profile_reconciler.change_usage_mode(
            request.account_id, request.usage_mode
        )

        added = tuple(
            p for p in request.usage_mode.partitions if p not in previous.partitions
        )
        outcomes = []
        if added:
            outcomes = await self.partition_initializer.initialize_partitions(
                request.account_id, request.usage_mode, partitions=added
            )

        return UpdateUsageModeResponse(
            profile=ProfileInfo.from_profile(profile),
            previous_usage_mode=previous,
            partitions=[PartitionInfo.from_outcome(o) for o in outcomes],
        )
