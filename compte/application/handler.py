"""Identity event handler.

Entry point for identity events raised by the client: a completed sign-in,
and credential link/unlink requests from the settings page.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum

import logfire

from compte.application.usecase.identity import (
    GetProfileUseCase,
    LinkCredentialUseCase,
    ReconcileProfileUseCase,
    UnlinkCredentialUseCase,
)
from compte.application.usecase.identity.get_profile import GetProfileRequest
from compte.application.usecase.identity.link_credential import (
    LinkCredentialRequest,
    LinkCredentialResponse,
)
from compte.application.usecase.identity.reconcile_profile import (
    ReconcileProfileRequest,
    ReconcileProfileResponse,
)
from compte.application.usecase.identity.unlink_credential import (
    UnlinkCredentialRequest,
    UnlinkCredentialResponse,
)
from compte.domain.error import IdentityCoreError, NotFoundError
from compte.domain.value import (
    AccountId,
    CredentialMaterial,
    ErrorKind,
    IdentityClaims,
    IdentityContext,
    ProviderKind,
)


class ReconciliationState(str, Enum):
    """Where an account stands in profile reconciliation."""

    NO_PROFILE = "no-profile"
    RECONCILING = "reconciling"
    PROFILE_ESTABLISHED = "profile-established"
    RECONCILIATION_FAILED = "reconciliation-failed"


@dataclass
class SignInOutcome:
    """Result of one sign-in workflow."""

    account_id: AccountId
    state: ReconciliationState
    result: ReconcileProfileResponse | None = None
    error_kind: ErrorKind | None = None


class IdentityEventHandler:
    """Runs identity workflows on behalf of the signed-in user.

    Sign-in workflows run in the background: the user is signed in as soon
    as the provider says so, whatever happens to the profile write. Each
    sign-in gets an independent workflow; nothing is locked, the merge
    writes are safe to run concurrently.

    Only workflows still running are tracked here; every other state is
    read back from the profile store.
    """

    def __init__(
        self,
        reconcile_profile: ReconcileProfileUseCase,
        get_profile: GetProfileUseCase,
        link_credential: LinkCredentialUseCase,
        unlink_credential: UnlinkCredentialUseCase,
    ) -> None:
        """Initialize identity event handler.

        Args:
            reconcile_profile: Reconcile profile use case
            get_profile: Get profile use case
            link_credential: Link credential use case
            unlink_credential: Unlink credential use case
        """
        self.reconcile_profile = reconcile_profile
        self.get_profile = get_profile
        self.link_credential = link_credential
        self.unlink_credential = unlink_credential

        # Running sign-in workflows per account, entries removed at zero
        self._in_flight: dict[AccountId, int] = {}
        # Strong references, the event loop only keeps weak ones
        self._tasks: set[asyncio.Task] = set()

    async def state_of(self, account_id: AccountId) -> ReconciliationState:
        """Current reconciliation state of an account.

        Raises:
            IdentityCoreError: Profile store unreachable
        """
        if account_id in self._in_flight:
            return ReconciliationState.RECONCILING
        try:
            await self.get_profile.execute(GetProfileRequest(account_id=account_id))
        except NotFoundError:
            return ReconciliationState.NO_PROFILE
        return ReconciliationState.PROFILE_ESTABLISHED

    def on_sign_in_completed(
        self, context: IdentityContext, claims: IdentityClaims
    ) -> asyncio.Task:
        """Start reconciliation without blocking the caller.

        Must be called from a running event loop.

        Args:
            context: Identity of the account that just signed in
            claims: Claims observed on sign-in

        Returns:
            Task resolving to a SignInOutcome; it never raises
        """
        task = asyncio.create_task(
            self.run_sign_in(context, claims),
            name=f"reconcile-profile:{context.account_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run_sign_in(
        self, context: IdentityContext, claims: IdentityClaims
    ) -> SignInOutcome:
        """Reconcile the profile for a completed sign-in.

        Failures are logged and reported in the outcome, never raised.
        """
        account_id = context.account_id
        self._in_flight[account_id] = self._in_flight.get(account_id, 0) + 1

        try:
            try:
                result = await self.reconcile_profile.execute(
                    ReconcileProfileRequest(
                        account_id=account_id,
                        email=claims.email,
                        display_name=claims.display_name,
                        avatar_url=claims.avatar_url,
                        requested_usage_mode=claims.requested_usage_mode,
                    )
                )
            except IdentityCoreError as e:
                return await self._failed(account_id, e.kind, e)
            except Exception as e:
                logfire.exception(
                    "Unexpected failure during profile reconciliation",
                    account_id=account_id,
                )
                return await self._failed(account_id, ErrorKind.UNEXPECTED, e)
        finally:
            remaining = self._in_flight[account_id] - 1
            if remaining:
                self._in_flight[account_id] = remaining
            else:
                del self._in_flight[account_id]

        return SignInOutcome(
            account_id=account_id,
            state=ReconciliationState.PROFILE_ESTABLISHED,
            result=result,
        )

    async def _failed(
        self, account_id: AccountId, kind: ErrorKind, error: Exception
    ) -> SignInOutcome:
        # An established profile stays established when a later refresh fails
        state = (
            ReconciliationState.PROFILE_ESTABLISHED
            if await self._profile_exists(account_id)
            else ReconciliationState.RECONCILIATION_FAILED
        )
        logfire.error(
            "Profile reconciliation failed, sign-in kept",
            account_id=account_id,
            error_kind=kind.value,
            error=str(error),
            state=state.value,
        )
        return SignInOutcome(account_id=account_id, state=state, error_kind=kind)

    async def _profile_exists(self, account_id: AccountId) -> bool:
        try:
            await self.get_profile.execute(GetProfileRequest(account_id=account_id))
        except NotFoundError:
            return False
        except IdentityCoreError as e:
            # Store still unreachable, nothing is known to be established
            logfire.warn(
                "Could not read profile after failed reconciliation",
                account_id=account_id,
                error_kind=e.kind.value,
            )
            return False
        except Exception:
            logfire.exception(
                "Unexpected failure reading profile after failed reconciliation",
                account_id=account_id,
            )
            return False
        return True

    async def on_link_requested(
        self, context: IdentityContext, material: CredentialMaterial
    ) -> LinkCredentialResponse:
        """Link a credential after the guard allows it."""
        return await self.link_credential.execute(
            LinkCredentialRequest(context=context, material=material)
        )

    async def on_unlink_requested(
        self, context: IdentityContext, provider: ProviderKind
    ) -> UnlinkCredentialResponse:
        """Unlink a credential after the guard allows it."""
        return await self.unlink_credential.execute(
            UnlinkCredentialRequest(context=context, provider=provider)
        )

    async def drain(self) -> None:
        """Wait for every sign-in workflow started so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
