"""Credential link/unlink guard."""

import logfire

from compte.domain.model.credential import CredentialSet
from compte.domain.value import AccountId, DenialReason, LinkDecision, ProviderKind

from .base import Service


class LinkGuard(Service):
    """Decides whether a credential change may reach the identity provider.

    Checks are preconditions: they run before any destructive provider call
    and never roll anything back.
    """

    def can_unlink(
        self, credentials: CredentialSet, provider: ProviderKind
    ) -> LinkDecision:
        """Check whether every credential of a kind may be unlinked.

        Args:
            credentials: Credentials currently bound to the account
            provider: Sign-in method the user wants to remove

        Returns:
            Denied with WOULD_STRAND_ACCOUNT when nothing would remain,
            a no-op when no such credential is bound, allowed otherwise
        """
        if not credentials.has_provider(provider):
            logfire.info(
                "Unlink is a no-op, provider not linked",
                account_id=credentials.account_id,
                provider=provider.value,
            )
            return LinkDecision.nothing_to_do()

        remaining = credentials.without(provider)
        if remaining.is_empty:
            logfire.warn(
                "Unlink denied, account would be stranded",
                account_id=credentials.account_id,
                provider=provider.value,
            )
            return LinkDecision.deny(DenialReason.WOULD_STRAND_ACCOUNT)

        return LinkDecision.allow()

    def can_link(
        self,
        current_account_id: AccountId,
        candidate_account_id: AccountId | None,
        provider: ProviderKind,
        credentials: CredentialSet | None = None,
        subject_id: str | None = None,
    ) -> LinkDecision:
        """Check whether a credential may be linked to the current account.

        The provider cannot merge two accounts; it can only add a credential
        to the account the user is signed in as.

        Args:
            current_account_id: Account the user is signed in as
            candidate_account_id: Account the credential already resolves to,
                if the client learned one (None for an unused credential)
            provider: Sign-in method being linked
            credentials: Current credentials, to detect an existing binding
            subject_id: Provider subject of the credential being linked

        Returns:
            Denied with CROSS_ACCOUNT_LINK_UNSUPPORTED for another account's
            credential, a no-op when already bound (including a credential
            that already resolves to the current account), allowed otherwise
        """
        if candidate_account_id is not None and candidate_account_id != current_account_id:
            logfire.warn(
                "Link denied, credential belongs to another account",
                account_id=current_account_id,
                candidate_account_id=candidate_account_id,
                provider=provider.value,
            )
            return LinkDecision.deny(DenialReason.CROSS_ACCOUNT_LINK_UNSUPPORTED)

        # A credential that already signs into this account is bound here
        already_bound = candidate_account_id == current_account_id or (
            credentials is not None
            and subject_id is not None
            and credentials.contains(provider, subject_id)
        )
        if already_bound:
            logfire.info(
                "Link is a no-op, credential already bound",
                account_id=current_account_id,
                provider=provider.value,
            )
            return LinkDecision.nothing_to_do()

        return LinkDecision.allow()
