"""Get profile use case."""

from pydantic import BaseModel

from compte.domain.error import NotFoundError
from compte.domain.service import ProfileReconciler
from compte.domain.value import AccountId

from .common import ProfileInfo


class GetProfileRequest(BaseModel):
    """Get profile request."""

    account_id: AccountId


class GetProfileUseCase:
    """Use case for reading the signed-in account's profile."""

    def __init__(self, profile_reconciler: ProfileReconciler) -> None:
        self.profile_reconciler = profile_reconciler

    async def execute(self, request: GetProfileRequest) -> ProfileInfo:
        """Return the stored profile.

        Raises:
            NotFoundError: No profile yet (reconciliation pending or failed)
        """
        profile = await self.profile_reconciler.get_profile(request.account_id)
        if profile is None:
            raise NotFoundError("Profile", request.account_id)
        return ProfileInfo.from_profile(profile)
