"""Domain layer DI providers."""

from dishka import Scope, provide

from compte.domain.repository import PartitionRepository, ProfileRepository
from compte.domain.service import LinkGuard, PartitionInitializer, ProfileReconciler
from compte.domain.value import RetryPolicy
from compte.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are APP-scoped: sign-in workflows outlive the request
    that started them, and repositories open their own transactions.
    """

    scope = Scope.APP

    @provide
    def get_profile_reconciler(
        self, profile_repository: ProfileRepository, retry_policy: RetryPolicy
    ) -> ProfileReconciler:
        """Provide profile reconciliation domain service."""
        return ProfileReconciler(
            profile_repository=profile_repository, retry_policy=retry_policy
        )

    @provide
    def get_partition_initializer(
        self, partition_repository: PartitionRepository
    ) -> PartitionInitializer:
        """Provide partition initialization domain service."""
        return PartitionInitializer(partition_repository=partition_repository)

    @provide
    def get_link_guard(self) -> LinkGuard:
        """Provide credential change guard."""
        return LinkGuard()
