"""List credentials use case."""

from pydantic import BaseModel

from compte.domain.service import IdentityProvider, LinkGuard
from compte.domain.value import IdentityContext, ProviderKind

from .common import DecisionInfo


class ListCredentialsRequest(BaseModel):
    """List credentials request."""

    context: IdentityContext


class CredentialInfo(BaseModel):
    """Credential information for response."""

    provider: ProviderKind
    subject_id: str
    unlink: DecisionInfo  # Whether the settings page may offer removal


class ListCredentialsResponse(BaseModel):
    """List credentials response."""

    account_id: str
    credentials: list[CredentialInfo]


class ListCredentialsUseCase:
    """Use case for showing bound sign-in methods with unlink eligibility."""

    def __init__(self, identity_provider: IdentityProvider, link_guard: LinkGuard) -> None:
        self.identity_provider = identity_provider
        self.link_guard = link_guard

    async def execute(self, request: ListCredentialsRequest) -> ListCredentialsResponse:
        identity = await self.identity_provider.get_current_identity(request.context)
        credentials = identity.credentials
        return ListCredentialsResponse(
            account_id=identity.account_id,
            credentials=[
                CredentialInfo(
                    provider=credential.provider,
                    subject_id=credential.subject_id,
                    unlink=DecisionInfo.from_decision(
                        self.link_guard.can_unlink(credentials, credential.provider)
                    ),
                )
                for credential in credentials.ordered()
            ],
        )
