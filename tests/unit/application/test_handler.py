"""Unit tests for IdentityEventHandler."""

import asyncio
from typing import Any

import pytest

from compte.adapter.identitytoolkit import MockIdentityToolkitClient
from compte.application.handler import IdentityEventHandler, ReconciliationState
from compte.application.usecase.identity import (
    GetProfileUseCase,
    LinkCredentialUseCase,
    ReconcileProfileUseCase,
    UnlinkCredentialUseCase,
)
from compte.domain.error import PermissionDeniedError, TransientError
from compte.domain.model import Profile
from compte.domain.service import LinkGuard, PartitionInitializer, ProfileReconciler
from compte.domain.value import (
    AccountId,
    ErrorKind,
    IdentityClaims,
    PartitionName,
    RetryPolicy,
    UsageMode,
)
from compte.persistence.repository.inmemory import (
    InMemoryPartitionRepository,
    InMemoryProfileRepository,
)
from tests.helpers import SteppingClock, make_context

U1 = AccountId("u1")


class BreakableProfileRepository(InMemoryProfileRepository):
    """In-memory store that can be switched to fail.

    ``error`` fails every write, and every read too unless ``reads_work``.
    """

    def __init__(
        self, error: Exception | None = None, reads_work: bool = False
    ) -> None:
        super().__init__()
        self.error = error
        self.reads_work = reads_work

    async def find_by_account_id(self, account_id):
        if self.error is not None and not self.reads_work:
            raise self.error
        return await super().find_by_account_id(account_id)

    async def merge(self, account_id, fields: dict[str, Any]) -> Profile:
        if self.error is not None:
            raise self.error
        return await super().merge(account_id, fields)


class GatedProfileRepository(InMemoryProfileRepository):
    """Holds every merge until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def merge(self, account_id, fields: dict[str, Any]) -> Profile:
        await self.release.wait()
        return await super().merge(account_id, fields)

def build_handler(
    profiles: InMemoryProfileRepository,
    partitions: InMemoryPartitionRepository,
    clock: SteppingClock,
) -> IdentityEventHandler:
    identity_provider = MockIdentityToolkitClient()
    guard = LinkGuard()
    reconciler = ProfileReconciler(
        profile_repository=profiles,
        retry_policy=RetryPolicy.immediate(max_attempts=3),
        clock=clock,
    )
    return IdentityEventHandler(
        reconcile_profile=ReconcileProfileUseCase(
            profile_reconciler=reconciler,
            partition_initializer=PartitionInitializer(partitions),
        ),
        get_profile=GetProfileUseCase(profile_reconciler=reconciler),
        link_credential=LinkCredentialUseCase(
            identity_provider=identity_provider, link_guard=guard
        ),
        unlink_credential=UnlinkCredentialUseCase(
            identity_provider=identity_provider, link_guard=guard
        ),
    )


class TestSignInWorkflow:
    """Tests for the background sign-in workflow."""

    @pytest.mark.asyncio
    async def test_first_then_returning_sign_in(self, clock: SteppingClock):
        """Should create once, keep the mode, and never re-initialize partitions."""
        # Arrange
        profiles = InMemoryProfileRepository()
        partitions = InMemoryPartitionRepository()
        handler = build_handler(profiles, partitions, clock)
        context = make_context(U1)

        # Act - first sign-in chooses both
        first = await handler.run_sign_in(
            context,
            IdentityClaims(email="a@x.com", requested_usage_mode=UsageMode.BOTH),
        )

        # Assert
        assert first.state is ReconciliationState.PROFILE_ESTABLISHED
        assert first.result.first_ever is True
        created = first.result.profile
        assert created.usage_mode is UsageMode.BOTH
        assert created.created_at == created.updated_at
        markers = await partitions.find_all_by_account_id(U1)
        assert {m.partition for m in markers} == {
            PartitionName.PERSONAL,
            PartitionName.BUSINESS,
        }
        assert partitions.write_count == 2

        # Act - returning sign-in without a mode
        second = await handler.run_sign_in(context, IdentityClaims(email="a@x.com"))

        # Assert
        assert second.state is ReconciliationState.PROFILE_ESTABLISHED
        assert second.result.first_ever is False
        stored = await profiles.find_by_account_id(U1)
        assert stored.usage_mode is UsageMode.BOTH
        assert stored.created_at == created.created_at
        assert stored.updated_at > created.updated_at
        assert partitions.write_count == 2
        assert await handler.state_of(U1) is ReconciliationState.PROFILE_ESTABLISHED

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, clock: SteppingClock):
        """Should end in reconciliation-failed with the error kind."""
        # Arrange
        profiles = BreakableProfileRepository(PermissionDeniedError("denied"))
        handler = build_handler(profiles, InMemoryPartitionRepository(), clock)

        # Act
        outcome = await handler.run_sign_in(make_context(U1), IdentityClaims())

        # Assert
        assert outcome.state is ReconciliationState.RECONCILIATION_FAILED
        assert outcome.error_kind is ErrorKind.PERMISSION
        assert outcome.result is None
        profiles.error = None
        assert await handler.state_of(U1) is ReconciliationState.NO_PROFILE

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, clock: SteppingClock):
        """Should map errors outside the taxonomy to unexpected."""
        profiles = BreakableProfileRepository(RuntimeError("boom"))
        handler = build_handler(profiles, InMemoryPartitionRepository(), clock)

        outcome = await handler.run_sign_in(make_context(U1), IdentityClaims())

        assert outcome.state is ReconciliationState.RECONCILIATION_FAILED
        assert outcome.error_kind is ErrorKind.UNEXPECTED

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_established_profile(self, clock: SteppingClock):
        """Should stay profile-established when a later refresh fails."""
        # Arrange
        profiles = BreakableProfileRepository()
        handler = build_handler(profiles, InMemoryPartitionRepository(), clock)
        context = make_context(U1)
        await handler.run_sign_in(context, IdentityClaims(email="a@x.com"))
        profiles.error = TransientError("store down")
        profiles.reads_work = True

        # Act
        outcome = await handler.run_sign_in(context, IdentityClaims(email="a@x.com"))

        # Assert
        assert outcome.error_kind is ErrorKind.TRANSIENT
        assert outcome.state is ReconciliationState.PROFILE_ESTABLISHED

    @pytest.mark.asyncio
    async def test_on_sign_in_completed_runs_in_background(self, clock: SteppingClock):
        """Should return a task immediately and finish on drain."""
        # Arrange
        profiles = InMemoryProfileRepository()
        handler = build_handler(profiles, InMemoryPartitionRepository(), clock)

        # Act
        task = handler.on_sign_in_completed(
            make_context(U1),
            IdentityClaims(requested_usage_mode=UsageMode.PERSONAL),
        )
        await handler.drain()

        # Assert
        assert task.done()
        assert task.result().state is ReconciliationState.PROFILE_ESTABLISHED
        stored = await profiles.find_by_account_id(U1)
        assert stored.usage_mode is UsageMode.PERSONAL

    @pytest.mark.asyncio
    async def test_unknown_account_has_no_profile(self, clock: SteppingClock):
        handler = build_handler(
            InMemoryProfileRepository(), InMemoryPartitionRepository(), clock
        )

        assert await handler.state_of(U1) is ReconciliationState.NO_PROFILE

    @pytest.mark.asyncio
    async def test_state_follows_running_workflow(self, clock: SteppingClock):
        """Should report reconciling while running and read the store after."""
        # Arrange
        profiles = GatedProfileRepository()
        handler = build_handler(profiles, InMemoryPartitionRepository(), clock)
        handler.on_sign_in_completed(make_context(U1), IdentityClaims())
        for _ in range(3):
            await asyncio.sleep(0)

        # Act & Assert
        assert await handler.state_of(U1) is ReconciliationState.RECONCILING

        profiles.release.set()
        await handler.drain()

        assert await handler.state_of(U1) is ReconciliationState.PROFILE_ESTABLISHED

    @pytest.mark.asyncio
    async def test_finished_workflows_leave_nothing_behind(self, clock: SteppingClock):
        """Should not keep per-account entries once workflows end."""
        # Arrange
        handler = build_handler(
            BreakableProfileRepository(), InMemoryPartitionRepository(), clock
        )
        contexts = [make_context(f"user-{i}") for i in range(20)]

        # Act
        for context in contexts:
            handler.on_sign_in_completed(context, IdentityClaims())
        await handler.drain()

        # Assert
        assert handler._in_flight == {}
        assert handler._tasks == set()
