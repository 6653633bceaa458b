"""Reconcile profile use case."""

import logfire
from pydantic import BaseModel

from compte.application.usecase.base import BaseUseCase
from compte.domain.service import PartitionInitializer, ProfileReconciler
from compte.domain.value import AccountId, UsageMode

from .common import PartitionInfo, ProfileInfo


class ReconcileProfileRequest(BaseModel):
    """Reconcile profile request."""

    account_id: AccountId
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    requested_usage_mode: UsageMode | None = None


class ReconcileProfileResponse(BaseModel):
    """Reconcile profile response."""

    profile: ProfileInfo
    first_ever: bool
    attempts: int
    partitions: list[PartitionInfo]


class ReconcileProfileUseCase(BaseUseCase):
    """Use case for bringing the profile in line with a completed sign-in."""

    def __init__(
        self,
        profile_reconciler: ProfileReconciler,
        partition_initializer: PartitionInitializer,
    ) -> None:
        """Initialize reconcile profile use case.

        Args:
            profile_reconciler: Profile reconciliation domain service
            partition_initializer: Partition initialization domain service
        """
        self.profile_reconciler = profile_reconciler
        self.partition_initializer = partition_initializer

    async def execute(
        self, request: ReconcileProfileRequest
    ) -> ReconcileProfileResponse:
        """Execute reconciliation flow.

        Steps:
        1. Reconcile the profile (bounded retry on transient store errors)
        2. On the first-ever reconciliation, initialize the partitions
           implied by the resolved usage mode

        Partition failures are reported in the response and never raise.

        Args:
            request: Claims observed on sign-in

        Returns:
            Reconciled profile, first-ever flag and partition outcomes

        Raises:
            TransientError: Store unreachable after every attempt
            PermissionDeniedError: Store rejected the write
        """
        result = await self.profile_reconciler.reconcile(
            account_id=request.account_id,
            email=request.email,
            display_name=request.display_name,
            avatar_url=request.avatar_url,
            requested_usage_mode=request.requested_usage_mode,
        )

        outcomes = []
        if result.first_ever:
            outcomes = await self.partition_initializer.initialize_partitions(
                request.account_id, result.profile.usage_mode
            )
        else:
            logfire.info(
                "Skipping partition initialization for existing profile",
                account_id=request.account_id,
            )

        return ReconcileProfileResponse(
            profile=ProfileInfo.from_profile(result.profile),
            first_ever=result.first_ever,
            attempts=result.attempts,
            partitions=[PartitionInfo.from_outcome(o) for o in outcomes],
        )
