"""Identity routes: sign-in reconciliation, profile and credentials."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from pydantic import BaseModel, field_validator

from compte.application.handler import IdentityEventHandler, ReconciliationState
from compte.application.usecase.identity import (
    GetProfileUseCase,
    ListCredentialsUseCase,
    UpdateUsageModeUseCase,
)
from compte.application.usecase.identity.common import ProfileInfo
from compte.application.usecase.identity.get_profile import GetProfileRequest
from compte.application.usecase.identity.link_credential import (
    LinkCredentialResponse,
)
from compte.application.usecase.identity.list_credentials import (
    ListCredentialsRequest,
    ListCredentialsResponse,
)
from compte.application.usecase.identity.unlink_credential import (
    UnlinkCredentialResponse,
)
from compte.application.usecase.identity.update_usage_mode import (
    UpdateUsageModeRequest,
    UpdateUsageModeResponse,
)
from compte.domain.service import IdentityProvider
from compte.domain.value import (
    CredentialMaterial,
    IdentityClaims,
    IdentityContext,
    ProviderKind,
    UsageMode,
)
from compte.interface.api.auth import get_identity_context

router = APIRouter(prefix="/identity", tags=["identity"], route_class=DishkaRoute)


class SignInAPIRequest(BaseModel):
    """API request sent by the client after the provider signed the user in."""

    # Only honoured while the stored mode is still unset
    requested_usage_mode: UsageMode | None = None


class SignInAPIResponse(BaseModel):
    """Sign-in accepted; reconciliation runs in the background."""

    account_id: str
    state: ReconciliationState


class UnlinkAPIRequest(BaseModel):
    """API request for removing a sign-in method."""

    provider: ProviderKind


class UsageModeAPIRequest(BaseModel):
    """API request for an explicit usage-mode change."""

    usage_mode: UsageMode

    @field_validator("usage_mode")
    @classmethod
    def check_usage_mode(cls, value: UsageMode) -> UsageMode:
        if not value.is_set:
            raise ValueError("usage_mode must be personal, business or both")
        return value


@router.post(
    "/sign-in",
    response_model=SignInAPIResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def sign_in_completed(
    background_tasks: BackgroundTasks,
    identity_provider: FromDishka[IdentityProvider],
    handler: FromDishka[IdentityEventHandler],
    request: SignInAPIRequest | None = None,
    context: IdentityContext = Depends(get_identity_context),
) -> SignInAPIResponse:
    """Report a completed sign-in and start profile reconciliation.

    Responds before the profile is written. The client keeps the user
    signed in whatever the reconciliation outcome is, and can poll
    GET /identity/profile.

    Example:
        POST /identity/sign-in
        Authorization: Bearer <id token>

        Request:
        {"requested_usage_mode": "business"}

        Response (202):
        {"account_id": "abc123", "state": "reconciling"}
    """
    # Also validates the token with the provider
    identity = await identity_provider.get_current_identity(context)
    claims = IdentityClaims(
        email=identity.email,
        display_name=identity.display_name,
        avatar_url=identity.avatar_url,
        requested_usage_mode=request.requested_usage_mode if request else None,
    )

    background_tasks.add_task(handler.run_sign_in, context, claims)

    return SignInAPIResponse(
        account_id=context.account_id, state=ReconciliationState.RECONCILING
    )


@router.get("/profile", response_model=ProfileInfo)
async def get_profile(
    identity_provider: FromDishka[IdentityProvider],
    get_profile_use_case: FromDishka[GetProfileUseCase],
    context: IdentityContext = Depends(get_identity_context),
) -> ProfileInfo:
    """Get the signed-in account's profile.

    Returns 404 while no profile has been reconciled yet.
    """
    await identity_provider.get_current_identity(context)
    return await get_profile_use_case.execute(
        GetProfileRequest(account_id=context.account_id)
    )


@router.get("/credentials", response_model=ListCredentialsResponse)
async def list_credentials(
    list_credentials_use_case: FromDishka[ListCredentialsUseCase],
    context: IdentityContext = Depends(get_identity_context),
) -> ListCredentialsResponse:
    """List bound sign-in methods and whether each may be removed."""
    return await list_credentials_use_case.execute(
        ListCredentialsRequest(context=context)
    )


@router.post("/credentials/link", response_model=LinkCredentialResponse)
async def link_credential(
    material: CredentialMaterial,
    response: Response,
    handler: FromDishka[IdentityEventHandler],
    context: IdentityContext = Depends(get_identity_context),
) -> LinkCredentialResponse:
    """Link a sign-in method to the signed-in account.

    Returns 409 with a reason and remediation when the credential belongs
    to another account; the provider is not contacted in that case.

    Example:
        POST /identity/credentials/link

        Request:
        {"provider": "google.com", "id_token": "<google id token>"}

        Response:
        {
            "decision": {"allowed": true, "no_op": false, ...},
            "provider": "google.com",
            "subject_id": "1234567890"
        }
    """
    result = await handler.on_link_requested(context, material)
    if not result.decision.allowed:
        response.status_code = status.HTTP_409_CONFLICT
    return result


@router.post("/credentials/unlink", response_model=UnlinkCredentialResponse)
async def unlink_credential(
    request: UnlinkAPIRequest,
    response: Response,
    handler: FromDishka[IdentityEventHandler],
    context: IdentityContext = Depends(get_identity_context),
) -> UnlinkCredentialResponse:
    """Remove a sign-in method from the signed-in account.

    Returns 409 with reason "would-strand-account" and a remediation hint
    when it is the only sign-in method left.
    """
    result = await handler.on_unlink_requested(context, request.provider)
    if not result.decision.allowed:
        response.status_code = status.HTTP_409_CONFLICT
    return result


@router.put("/usage-mode", response_model=UpdateUsageModeResponse)
async def update_usage_mode(
    request: UsageModeAPIRequest,
    identity_provider: FromDishka[IdentityProvider],
    update_usage_mode_use_case: FromDishka[UpdateUsageModeUseCase],
    context: IdentityContext = Depends(get_identity_context),
) -> UpdateUsageModeResponse:
    """Change the usage mode from settings.

    Unlike sign-in this replaces a mode that is already set. Partitions the
    new mode adds are initialized; none are removed.
    """
    await identity_provider.get_current_identity(context)
    return await update_usage_mode_use_case.execute(
        UpdateUsageModeRequest(
            account_id=context.account_id, usage_mode=request.usage_mode
        )
    )
