"""Profile reconciliation domain service."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import logfire

from compte.domain.error import NotFoundError, PermissionDeniedError, TransientError
from compte.domain.model.profile import Profile
from compte.domain.repository.profile import ProfileRepository
from compte.domain.value import AccountId, RetryPolicy, UsageMode

from .base import Service


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReconcileResult:
    """Outcome of one successful reconciliation."""

    profile: Profile
    first_ever: bool  # No profile existed before this reconciliation
    attempts: int


class ProfileReconciler(Service):
    """Keeps the stored profile in step with the latest sign-in.

    Every reconciliation is a read followed by a merge-write. The write only
    names the fields it owns. The store keeps the first ``created_at`` and
    only replaces an unset usage mode, so repeated or concurrent runs for one
    account converge on the same stored state without locking, even when
    both read "no profile".
    """

    def __init__(
        self,
        profile_repository: ProfileRepository,
        retry_policy: RetryPolicy,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize profile reconciler.

        Args:
            profile_repository: Profile document repository
            retry_policy: Attempts and backoff for transient store failures
            clock: Source of timestamps for created_at/updated_at
        """
        self.profile_repository = profile_repository
        self.retry_policy = retry_policy
        self.clock = clock

    @staticmethod
    def build_payload(
        existing: Profile | None,
        email: str | None,
        display_name: str | None,
        avatar_url: str | None,
        requested_usage_mode: UsageMode | None,
        now: datetime,
    ) -> dict[str, Any]:
        """Compute the merge payload for one reconciliation.

        Observed claims and ``updated_at`` are always overwritten.
        ``created_at`` is only included when no profile exists yet.
        ``usage_mode`` follows the write-once rule.

        Args:
            existing: Profile read from the store, None if absent
            email: Email observed on sign-in
            display_name: Display name observed on sign-in
            avatar_url: Avatar URL observed on sign-in
            requested_usage_mode: Mode supplied by this sign-in, if any
            now: Timestamp for this reconciliation

        Returns:
            Field names to values for the merge-write
        """
        stored_mode = existing.usage_mode if existing else UsageMode.UNSET
        payload: dict[str, Any] = {
            "email": email,
            "display_name": display_name,
            "avatar_url": avatar_url,
            "usage_mode": stored_mode.resolve(requested_usage_mode),
            "updated_at": now,
        }
        if existing is None:
            payload["created_at"] = now
        return payload

    async def reconcile(
        self,
        account_id: AccountId,
        email: str | None,
        display_name: str | None,
        avatar_url: str | None,
        requested_usage_mode: UsageMode | None = None,
    ) -> ReconcileResult:
        """Read, merge and write the profile, retrying transient failures.

        Args:
            account_id: Provider-issued account id
            email: Email observed on sign-in
            display_name: Display name observed on sign-in
            avatar_url: Avatar URL observed on sign-in
            requested_usage_mode: Mode chosen during this sign-in, if any

        Returns:
            The profile as stored after the merge and whether this call
            found no profile

        Raises:
            TransientError: Store still unreachable after the last attempt
            PermissionDeniedError: Store rejected the read or write (not retried)
        """
        policy = self.retry_policy
        with logfire.span(
            "profile_reconciler.reconcile",
            account_id=account_id,
            requested_usage_mode=requested_usage_mode.value
            if requested_usage_mode
            else None,
            max_attempts=policy.max_attempts,
        ):
            if policy.initial_delay:
                await asyncio.sleep(policy.initial_delay)

            # Sticky across attempts: a write that landed but reported failure
            # must not hide that this workflow saw the account first.
            first_ever = False
            attempt = 0

            while True:
                attempt += 1
                try:
                    existing = await self.profile_repository.find_by_account_id(
                        account_id
                    )
                    if existing is None:
                        first_ever = True
                    payload = self.build_payload(
                        existing,
                        email,
                        display_name,
                        avatar_url,
                        requested_usage_mode,
                        self.clock(),
                    )
                    profile = await self.profile_repository.merge(account_id, payload)
                except PermissionDeniedError as e:
                    logfire.error(
                        "Profile reconciliation rejected by store policy",
                        account_id=account_id,
                        attempt=attempt,
                        error=str(e),
                    )
                    raise
                except TransientError as e:
                    if attempt >= policy.max_attempts:
                        logfire.error(
                            "Profile reconciliation failed after all attempts",
                            account_id=account_id,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise
                    logfire.warn(
                        "Profile reconciliation attempt failed",
                        account_id=account_id,
                        attempt=attempt,
                        max_attempts=policy.max_attempts,
                        error=str(e),
                    )
                    await asyncio.sleep(policy.delay_after(attempt))
                    continue

                logfire.info(
                    "Profile reconciled",
                    account_id=account_id,
                    attempt=attempt,
                    first_ever=first_ever,
                    usage_mode=profile.usage_mode.value,
                )
                return ReconcileResult(
                    profile=profile, first_ever=first_ever, attempts=attempt
                )


    async def get_profile(self, account_id: AccountId) -> Profile | None:
        """Read the stored profile without modifying it.

        Args:
            account_id: Provider-issued account id

        Returns:
            Profile if stored, None otherwise
        """
        with logfire.span("profile_reconciler.get_profile", account_id=account_id):
            profile = await self.profile_repository.find_by_account_id(account_id)
            if profile is None:
                logfire.warn("Profile not found", account_id=account_id)
            return profile

    async def change_usage_mode(
        self, account_id: AccountId, usage_mode: UsageMode
    ) -> tuple[Profile, UsageMode]:
        """Apply an explicit usage-mode choice made by the user.

        Unlike sign-in reconciliation this may replace a mode that is
        already set. Not retried: the user is waiting and can resubmit.

        Args:
            account_id: Provider-issued account id
            usage_mode: New mode (personal, business or both)

        Returns:
            Updated profile and the mode it held before

        Raises:
            NotFoundError: No profile stored for the account
            ValueError: usage_mode is UNSET
        """
        if not usage_mode.is_set:
            raise ValueError("Usage mode can only be changed to personal, business or both")

        with logfire.span(
            "profile_reconciler.change_usage_mode",
            account_id=account_id,
            usage_mode=usage_mode.value,
        ):
            existing = await self.profile_repository.find_by_account_id(account_id)
            if existing is None:
                raise NotFoundError("Profile", account_id)

            profile = await self.profile_repository.replace_usage_mode(
                account_id, usage_mode, self.clock()
            )
            if profile is None:
                raise NotFoundError("Profile", account_id)
            logfire.info(
                "Usage mode changed",
                account_id=account_id,
                previous=existing.usage_mode.value,
                usage_mode=usage_mode.value,
            )
            return profile, existing.usage_mode
