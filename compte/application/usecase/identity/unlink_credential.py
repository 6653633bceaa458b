"""Unlink credential use case."""

import logfire
from pydantic import BaseModel

from compte.domain.service import IdentityProvider, LinkGuard
from compte.domain.value import IdentityContext, ProviderKind

from .common import DecisionInfo


class UnlinkCredentialRequest(BaseModel):
    """Unlink credential request."""

    context: IdentityContext
    provider: ProviderKind


class UnlinkCredentialResponse(BaseModel):
    """Unlink credential response."""

    decision: DecisionInfo
    provider: ProviderKind
    remaining_providers: list[ProviderKind]


class UnlinkCredentialUseCase:
    """Use case for removing a sign-in method from the current account."""

    def __init__(self, identity_provider: IdentityProvider, link_guard: LinkGuard) -> None:
        """Initialize unlink credential use case.

        Args:
            identity_provider: Identity provider client
            link_guard: Credential change guard
        """
        self.identity_provider = identity_provider
        self.link_guard = link_guard

    async def execute(
        self, request: UnlinkCredentialRequest
    ) -> UnlinkCredentialResponse:
        """Execute unlink flow.

        Steps:
        1. Read the account's current credentials from the provider
        2. Check the guard, which refuses to remove the last credential
        3. Only when allowed, ask the provider to unlink

        Raises:
            ReauthRequiredError: Provider requires a recent sign-in
        """
        context = request.context
        with logfire.span(
            "unlink_credential.execute",
            account_id=context.account_id,
            provider=request.provider.value,
        ):
            identity = await self.identity_provider.get_current_identity(context)
            credentials = identity.credentials

            decision = self.link_guard.can_unlink(credentials, request.provider)
            if decision.allowed and not decision.no_op:
                await self.identity_provider.unlink_credential(
                    context, request.provider
                )
                credentials = credentials.without(request.provider)

            return UnlinkCredentialResponse(
                decision=DecisionInfo.from_decision(decision),
                provider=request.provider,
                remaining_providers=sorted(
                    credentials.providers, key=lambda p: p.value
                ),
            )
