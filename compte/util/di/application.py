"""Application layer DI providers."""

from dishka import Scope, provide

from compte.application.handler import IdentityEventHandler
from compte.application.usecase.identity import (
    GetProfileUseCase,
    LinkCredentialUseCase,
    ListCredentialsUseCase,
    ReconcileProfileUseCase,
    UnlinkCredentialUseCase,
    UpdateUsageModeUseCase,
)
from compte.domain.service import (
    IdentityProvider,
    LinkGuard,
    PartitionInitializer,
    ProfileReconciler,
)
from compte.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.APP)
    def get_reconcile_profile_use_case(
        self,
        profile_reconciler: ProfileReconciler,
        partition_initializer: PartitionInitializer,
    ) -> ReconcileProfileUseCase:
        """Provide reconcile profile use case."""
        return ReconcileProfileUseCase(
            profile_reconciler=profile_reconciler,
            partition_initializer=partition_initializer,
        )

    @provide(scope=Scope.APP)
    def get_link_credential_use_case(
        self, identity_provider: IdentityProvider, link_guard: LinkGuard
    ) -> LinkCredentialUseCase:
        """Provide link credential use case."""
        return LinkCredentialUseCase(
            identity_provider=identity_provider, link_guard=link_guard
        )

    @provide(scope=Scope.APP)
    def get_unlink_credential_use_case(
        self, identity_provider: IdentityProvider, link_guard: LinkGuard
    ) -> UnlinkCredentialUseCase:
        """Provide unlink credential use case."""
        return UnlinkCredentialUseCase(
            identity_provider=identity_provider, link_guard=link_guard
        )

    # One handler per process, it tracks background sign-in workflows
    @provide(scope=Scope.APP)
    def get_identity_event_handler(
        self,
        reconcile_profile: ReconcileProfileUseCase,
        get_profile: GetProfileUseCase,
        link_credential: LinkCredentialUseCase,
        unlink_credential: UnlinkCredentialUseCase,
    ) -> IdentityEventHandler:
        """Provide identity event handler."""
        return IdentityEventHandler(
            reconcile_profile=reconcile_profile,
            get_profile=get_profile,
            link_credential=link_credential,
            unlink_credential=unlink_credential,
        )

    @provide(scope=Scope.APP)
    def get_get_profile_use_case(
        self, profile_reconciler: ProfileReconciler
    ) -> GetProfileUseCase:
        """Provide get profile use case."""
        return GetProfileUseCase(profile_reconciler=profile_reconciler)

    @provide(scope=Scope.REQUEST)
    def get_list_credentials_use_case(
        self, identity_provider: IdentityProvider, link_guard: LinkGuard
    ) -> ListCredentialsUseCase:
        """Provide list credentials use case."""
        return ListCredentialsUseCase(
            identity_provider=identity_provider, link_guard=link_guard
        )

    @provide(scope=Scope.REQUEST)
    def get_update_usage_mode_use_case(
        self,
        profile_reconciler: ProfileReconciler,
        partition_initializer: PartitionInitializer,
    ) -> UpdateUsageModeUseCase:
        """Provide update usage mode use case."""
        return UpdateUsageModeUseCase(
            profile_reconciler=profile_reconciler,
            partition_initializer=partition_initializer,
        )
