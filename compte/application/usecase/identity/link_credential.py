"""Link credential use case."""

import logfire
from pydantic import BaseModel

from compte.domain.service import IdentityProvider, LinkGuard
from compte.domain.value import CredentialMaterial, IdentityContext, ProviderKind

from .common import DecisionInfo


class LinkCredentialRequest(BaseModel):
    """Link credential request."""

    context: IdentityContext
    material: CredentialMaterial


class LinkCredentialResponse(BaseModel):
    """Link credential response."""

    decision: DecisionInfo
    provider: ProviderKind
    subject_id: str | None = None  # Set when a credential was bound


class LinkCredentialUseCase:
    """Use case for adding a sign-in method to the current account."""

    def __init__(self, identity_provider: IdentityProvider, link_guard: LinkGuard) -> None:
        """Initialize link credential use case.

        Args:
            identity_provider: Identity provider client
            link_guard: Credential change guard
        """
        self.identity_provider = identity_provider
        self.link_guard = link_guard

    async def execute(self, request: LinkCredentialRequest) -> LinkCredentialResponse:
        """Execute link flow.

        Steps:
        1. Check the guard (cross-account and already-bound)
        2. Only when allowed, ask the provider to bind the credential

        A denial is returned in the response and the provider is not called.
        If the caller goes away after the provider call, the link stays.

        Raises:
            AlreadyInUseError: Provider reports the credential bound elsewhere
            ReauthRequiredError: Provider requires a recent sign-in
            PopupCancelledError: Popup flow dismissed by the user
        """
        context = request.context
        material = request.material

        with logfire.span(
            "link_credential.execute",
            account_id=context.account_id,
            provider=material.provider.value,
        ):
            credentials = None
            if material.subject_id is not None:
                identity = await self.identity_provider.get_current_identity(context)
                credentials = identity.credentials

            decision = self.link_guard.can_link(
                current_account_id=context.account_id,
                candidate_account_id=material.candidate_account_id,
                provider=material.provider,
                credentials=credentials,
                subject_id=material.subject_id,
            )
            if not decision.allowed or decision.no_op:
                return LinkCredentialResponse(
                    decision=DecisionInfo.from_decision(decision),
                    provider=material.provider,
                    subject_id=material.subject_id if decision.no_op else None,
                )

            credential = await self.identity_provider.link_credential(context, material)
            return LinkCredentialResponse(
                decision=DecisionInfo.from_decision(decision),
                provider=credential.provider,
                subject_id=credential.subject_id,
            )
