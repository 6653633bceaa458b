"""Unit tests for ProfileReconciler."""

import asyncio
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, call, patch

import pytest

from compte.domain.error import NotFoundError, PermissionDeniedError, TransientError
from compte.domain.model import Profile
from compte.domain.service import ProfileReconciler
from compte.domain.value import AccountId, RetryPolicy, UsageMode
from compte.persistence.repository.inmemory import InMemoryProfileRepository

ACCOUNT = AccountId("u1")


class FlakyProfileRepository(InMemoryProfileRepository):
    """Fails the first ``failures`` merges with the given error."""

    def __init__(self, failures: int, error: Exception | None = None):
        super().__init__()
        self.failures = failures
        self.error = error or TransientError("store offline")
        self.merge_attempts = 0

    async def merge(self, account_id: AccountId, fields: dict[str, Any]) -> Profile:
        self.merge_attempts += 1
        if self.merge_attempts <= self.failures:
            raise self.error
        return await super().merge(account_id, fields)


class InterleavingProfileRepository(InMemoryProfileRepository):
    """Holds every reader until ``readers`` reads have happened.

    Lets concurrent reconciliations all observe the same stale state
    before any of them writes.
    """

    def __init__(self, readers: int):
        super().__init__()
        self.readers = readers
        self.reads = 0
        self._all_read = asyncio.Event()

    async def find_by_account_id(self, account_id: AccountId) -> Profile | None:
        profile = await super().find_by_account_id(account_id)
        self.reads += 1
        if self.reads >= self.readers:
            self._all_read.set()
        await self._all_read.wait()
        return profile


def make_reconciler(repo, clock, policy=None) -> ProfileReconciler:
    return ProfileReconciler(
        profile_repository=repo,
        retry_policy=policy or RetryPolicy.immediate(),
        clock=clock,
    )


async def sign_in(reconciler, requested=None, email="u1@example.com"):
    return await reconciler.reconcile(
        account_id=ACCOUNT,
        email=email,
        display_name="User One",
        avatar_url="https://example.com/u1.png",
        requested_usage_mode=requested,
    )


class TestReconcile:
    """Tests for ProfileReconciler.reconcile()."""

    @pytest.mark.asyncio
    async def test_first_reconciliation_creates_profile(self, clock):
        """Should create the profile and report first-ever."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)

        # Act
        result = await sign_in(reconciler, UsageMode.BOTH)

        # Assert
        assert result.first_ever is True
        assert result.attempts == 1
        stored = repo.raw_document(ACCOUNT)
        assert stored["usage_mode"] is UsageMode.BOTH
        assert stored["email"] == "u1@example.com"
        assert stored["created_at"] == stored["updated_at"]

    @pytest.mark.asyncio
    async def test_repeated_reconciliation_is_idempotent(self, clock):
        """Should store the same document apart from updated_at."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        await sign_in(reconciler, UsageMode.PERSONAL)
        first = repo.raw_document(ACCOUNT)

        # Act
        for _ in range(3):
            result = await sign_in(reconciler, UsageMode.PERSONAL)

        # Assert
        last = repo.raw_document(ACCOUNT)
        assert result.first_ever is False
        assert last["updated_at"] > first["updated_at"]
        assert {k: v for k, v in last.items() if k != "updated_at"} == {
            k: v for k, v in first.items() if k != "updated_at"
        }

    @pytest.mark.asyncio
    async def test_created_at_written_once(self, clock):
        """Should leave created_at out of later payloads."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        first = await sign_in(reconciler)

        # Act
        second = await sign_in(reconciler)

        # Assert
        assert second.profile.created_at == first.profile.created_at
        assert second.profile.updated_at > first.profile.updated_at

    @pytest.mark.asyncio
    async def test_stored_usage_mode_is_never_regressed(self, clock):
        """Should keep business when a later sign-in requests personal."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        await sign_in(reconciler, UsageMode.BUSINESS)

        # Act
        result = await sign_in(reconciler, UsageMode.PERSONAL)

        # Assert
        assert result.profile.usage_mode is UsageMode.BUSINESS
        assert repo.raw_document(ACCOUNT)["usage_mode"] is UsageMode.BUSINESS

    @pytest.mark.asyncio
    async def test_unset_mode_takes_first_requested_value(self, clock):
        """Should replace a stored unset mode with the requested one."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        await sign_in(reconciler)  # No mode requested yet
        assert repo.raw_document(ACCOUNT)["usage_mode"] is UsageMode.UNSET

        # Act
        result = await sign_in(reconciler, UsageMode.PERSONAL)

        # Assert
        assert result.first_ever is False
        assert repo.raw_document(ACCOUNT)["usage_mode"] is UsageMode.PERSONAL

    @pytest.mark.asyncio
    async def test_observed_claims_overwrite_previous_ones(self, clock):
        """Should refresh email from the latest sign-in."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        await sign_in(reconciler, email="old@example.com")

        # Act
        await sign_in(reconciler, email="new@example.com")

        # Assert
        assert repo.raw_document(ACCOUNT)["email"] == "new@example.com"

    @pytest.mark.asyncio
    async def test_merge_leaves_unnamed_fields_alone(self, clock):
        """Should not drop fields written by others."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        await sign_in(reconciler)
        await repo.merge(ACCOUNT, {"locale": "fr-FR"})

        # Act
        await sign_in(reconciler)

        # Assert
        assert repo.raw_document(ACCOUNT)["locale"] == "fr-FR"


class TestReconcileRetry:
    """Tests for the bounded retry of ProfileReconciler.reconcile()."""

    @pytest.mark.asyncio
    async def test_succeeds_after_four_transient_failures(self, clock):
        """Should succeed on the fifth attempt with the intended payload."""
        # Arrange
        repo = FlakyProfileRepository(failures=4)
        reconciler = make_reconciler(repo, clock)

        # Act
        result = await sign_in(reconciler, UsageMode.BOTH)

        # Assert
        assert result.attempts == 5
        assert repo.merge_attempts == 5
        assert result.first_ever is True
        stored = repo.raw_document(ACCOUNT)
        assert stored["usage_mode"] is UsageMode.BOTH
        assert stored["display_name"] == "User One"

    @pytest.mark.asyncio
    async def test_surfaces_error_after_five_transient_failures(self, clock):
        """Should raise the transient error and stop at five attempts."""
        # Arrange
        repo = FlakyProfileRepository(failures=10)
        reconciler = make_reconciler(repo, clock)

        # Act & Assert
        with pytest.raises(TransientError):
            await sign_in(reconciler)

        assert repo.merge_attempts == 5
        assert repo.raw_document(ACCOUNT) is None

    @pytest.mark.asyncio
    async def test_permission_denied_is_not_retried(self, clock):
        """Should raise immediately on a permission failure."""
        # Arrange
        repo = FlakyProfileRepository(
            failures=10, error=PermissionDeniedError("rules rejected write")
        )
        reconciler = make_reconciler(repo, clock)

        # Act & Assert
        with pytest.raises(PermissionDeniedError):
            await sign_in(reconciler)

        assert repo.merge_attempts == 1

    @pytest.mark.asyncio
    async def test_waits_n_units_after_attempt_n(self, clock):
        """Should back off linearly and not wait after the last attempt."""
        # Arrange
        repo = FlakyProfileRepository(failures=10)
        reconciler = make_reconciler(
            repo, clock, RetryPolicy(max_attempts=5, backoff_unit=1.0)
        )

        # Act
        with patch(
            "compte.domain.service.profile_reconciler.asyncio.sleep",
            new_callable=AsyncMock,
        ) as mock_sleep:
            with pytest.raises(TransientError):
                await sign_in(reconciler)

        # Assert
        assert mock_sleep.await_args_list == [call(1.0), call(2.0), call(3.0), call(4.0)]

    @pytest.mark.asyncio
    async def test_initial_delay_before_first_attempt(self, clock):
        """Should wait the grace period once before reading."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(
            repo, clock, RetryPolicy(max_attempts=5, initial_delay=1.0)
        )

        # Act
        with patch(
            "compte.domain.service.profile_reconciler.asyncio.sleep",
            new_callable=AsyncMock,
        ) as mock_sleep:
            await sign_in(reconciler)

        # Assert
        mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_first_ever_sticky_when_write_landed_but_reported_failure(
        self, clock
    ):
        """Should still report first-ever if a failed attempt saw no profile."""

        # Arrange
        class LandedButFailedRepository(InMemoryProfileRepository):
            def __init__(self):
                super().__init__()
                self.calls = 0

            async def merge(self, account_id, fields):
                self.calls += 1
                profile = await super().merge(account_id, fields)
                if self.calls == 1:
                    raise TransientError("connection dropped after commit")
                return profile

        repo = LandedButFailedRepository()
        reconciler = make_reconciler(repo, clock)

        # Act
        result = await sign_in(reconciler, UsageMode.PERSONAL)

        # Assert
        assert result.attempts == 2
        assert result.first_ever is True


class TestConcurrentReconcile:
    """Tests for overlapping reconciliations of one account."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "modes",
        [(None, UsageMode.BUSINESS), (UsageMode.BUSINESS, None)],
    )
    async def test_chosen_mode_survives_racing_sign_in_without_mode(
        self, clock, modes
    ):
        """Should keep business whichever of the two writes lands last."""
        # Arrange
        repo = InterleavingProfileRepository(readers=2)
        reconciler = make_reconciler(repo, clock)

        # Act
        results = await asyncio.gather(*(sign_in(reconciler, mode) for mode in modes))

        # Assert
        assert all(result.first_ever for result in results)
        assert repo.raw_document(ACCOUNT)["usage_mode"] is UsageMode.BUSINESS

    @pytest.mark.asyncio
    async def test_created_at_kept_from_first_write(self, clock):
        """Should not let a duplicate first sign-in rewrite created_at."""
        # Arrange
        repo = InterleavingProfileRepository(readers=2)
        reconciler = make_reconciler(repo, clock)

        # Act
        results = await asyncio.gather(
            sign_in(reconciler, UsageMode.BOTH), sign_in(reconciler, UsageMode.BOTH)
        )

        # Assert
        stored = repo.raw_document(ACCOUNT)
        first_write = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        assert stored["created_at"] == first_write
        assert stored["updated_at"] > first_write
        assert stored["usage_mode"] is UsageMode.BOTH
        assert {r.profile.created_at for r in results} == {first_write}

    @pytest.mark.asyncio
    async def test_many_duplicate_sign_ins_converge(self, clock):
        """Should converge on one document for five overlapping sign-ins."""
        # Arrange
        repo = InterleavingProfileRepository(readers=5)
        reconciler = make_reconciler(repo, clock)
        modes = [None, UsageMode.PERSONAL, None, None, None]

        # Act
        await asyncio.gather(*(sign_in(reconciler, mode) for mode in modes))

        # Assert
        stored = repo.raw_document(ACCOUNT)
        assert stored["usage_mode"] is UsageMode.PERSONAL
        assert stored["created_at"] == datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class TestChangeUsageMode:
    """Tests for ProfileReconciler.change_usage_mode()."""

    @pytest.mark.asyncio
    async def test_replaces_existing_mode(self, clock):
        """Should replace a set mode when the user changes it explicitly."""
        # Arrange
        repo = InMemoryProfileRepository()
        reconciler = make_reconciler(repo, clock)
        await sign_in(reconciler, UsageMode.PERSONAL)

        # Act
        profile, previous = await reconciler.change_usage_mode(
            ACCOUNT, UsageMode.BOTH
        )

        # Assert
        assert previous is UsageMode.PERSONAL
        assert profile.usage_mode is UsageMode.BOTH
        assert repo.raw_document(ACCOUNT)["usage_mode"] is UsageMode.BOTH

    @pytest.mark.asyncio
    async def test_requires_existing_profile(self, clock):
        """Should raise NotFoundError before the first reconciliation."""
        reconciler = make_reconciler(InMemoryProfileRepository(), clock)

        with pytest.raises(NotFoundError):
            await reconciler.change_usage_mode(ACCOUNT, UsageMode.BUSINESS)

    @pytest.mark.asyncio
    async def test_rejects_unset(self, clock):
        """Should refuse to clear the mode."""
        reconciler = make_reconciler(InMemoryProfileRepository(), clock)

        with pytest.raises(ValueError):
            await reconciler.change_usage_mode(ACCOUNT, UsageMode.UNSET)
