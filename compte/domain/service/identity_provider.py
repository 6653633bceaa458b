"""Identity provider interface."""

from compte.domain.model.credential import Credential, CurrentIdentity
from compte.domain.value import CredentialMaterial, IdentityContext, ProviderKind


class IdentityProvider:
    """Generic identity provider interface.

    Implementations are remote and fallible. They raise IdentityCoreError
    subclasses only; provider-specific codes never leave the adapter.
    """

    async def get_current_identity(self, context: IdentityContext) -> CurrentIdentity:
        """Resolve the signed-in account and its bound credentials.

        Args:
            context: Caller identity (account id and session token)

        Returns:
            Account claims and credential set
        """
        raise NotImplementedError

    async def link_credential(
        self, context: IdentityContext, material: CredentialMaterial
    ) -> Credential:
        """Bind a new credential to the signed-in account.

        Args:
            context: Caller identity
            material: Credential material obtained client-side

        Returns:
            The credential now bound to the account

        Raises:
            AlreadyInUseError: Credential belongs to another account
            ReauthRequiredError: A recent sign-in is required
            PopupCancelledError: The user dismissed the provider popup
        """
        raise NotImplementedError

    async def unlink_credential(
        self, context: IdentityContext, provider: ProviderKind
    ) -> None:
        """Remove every credential of the given kind from the account.

        Args:
            context: Caller identity
            provider: Sign-in method to remove
        """
        raise NotImplementedError
