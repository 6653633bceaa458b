"""Unit tests for the in-memory profile repository's merge rules."""

from datetime import datetime, timedelta, timezone

import pytest

from compte.domain.value import AccountId, UsageMode
from compte.persistence.repository.inmemory import InMemoryProfileRepository

ACCOUNT = AccountId("u1")
T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(seconds=1)


class TestInMemoryProfileMerge:
    """Tests for InMemoryProfileRepository.merge()."""

    @pytest.mark.asyncio
    async def test_created_at_only_written_on_create(self):
        # Arrange
        repo = InMemoryProfileRepository()
        await repo.merge(ACCOUNT, {"created_at": T0, "updated_at": T0})

        # Act
        profile = await repo.merge(ACCOUNT, {"created_at": T1, "updated_at": T1})

        # Assert
        assert profile.created_at == T0
        assert profile.updated_at == T1

    @pytest.mark.asyncio
    async def test_set_usage_mode_not_replaced(self):
        """Should keep business against a stale unset or personal write."""
        # Arrange
        repo = InMemoryProfileRepository()
        await repo.merge(
            ACCOUNT,
            {"usage_mode": UsageMode.BUSINESS, "created_at": T0, "updated_at": T0},
        )

        # Act
        await repo.merge(ACCOUNT, {"usage_mode": UsageMode.UNSET, "updated_at": T1})
        profile = await repo.merge(
            ACCOUNT, {"usage_mode": UsageMode.PERSONAL, "updated_at": T1}
        )

        # Assert
        assert profile.usage_mode is UsageMode.BUSINESS

    @pytest.mark.asyncio
    async def test_unset_usage_mode_replaced(self):
        repo = InMemoryProfileRepository()
        await repo.merge(
            ACCOUNT,
            {"usage_mode": UsageMode.UNSET, "created_at": T0, "updated_at": T0},
        )

        profile = await repo.merge(
            ACCOUNT, {"usage_mode": UsageMode.BOTH, "updated_at": T1}
        )

        assert profile.usage_mode is UsageMode.BOTH


class TestInMemoryReplaceUsageMode:
    """Tests for InMemoryProfileRepository.replace_usage_mode()."""

    @pytest.mark.asyncio
    async def test_overwrites_set_mode(self):
        repo = InMemoryProfileRepository()
        await repo.merge(
            ACCOUNT,
            {"usage_mode": UsageMode.PERSONAL, "created_at": T0, "updated_at": T0},
        )

        profile = await repo.replace_usage_mode(ACCOUNT, UsageMode.BUSINESS, T1)

        assert profile.usage_mode is UsageMode.BUSINESS
        assert profile.created_at == T0
        assert profile.updated_at == T1

    @pytest.mark.asyncio
    async def test_missing_profile(self):
        repo = InMemoryProfileRepository()

        assert await repo.replace_usage_mode(ACCOUNT, UsageMode.BOTH, T0) is None
