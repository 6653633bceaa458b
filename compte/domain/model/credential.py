"""Credentials bound to an account.

A logical account can be reached through several sign-in methods
(password, Google, Apple...). The provider owns the binding; the core
only reasons about the set.
"""

from pydantic import Field

from compte.domain.model.common import DomainModel
from compte.domain.value import AccountId, ProviderKind


class Credential(DomainModel):
    """One bound sign-in method."""

    provider: ProviderKind
    subject_id: str  # Permanent subject on that provider (uid, sub, email)


class CredentialSet(DomainModel):
    """Unordered credentials currently bound to one account.

    Never empty while the account exists and is reachable.
    """

    account_id: AccountId
    credentials: frozenset[Credential] = Field(default_factory=frozenset)

    def ordered(self) -> list[Credential]:
        """Credentials in a stable order for display."""
        return sorted(self.credentials, key=lambda c: (c.provider.value, c.subject_id))

    @property
    def is_empty(self) -> bool:
        return not self.credentials

    @property
    def providers(self) -> frozenset[ProviderKind]:
        return frozenset(c.provider for c in self.credentials)

    def has_provider(self, provider: ProviderKind) -> bool:
        """Whether any credential of the given kind is bound."""
        return provider in self.providers

    def contains(self, provider: ProviderKind, subject_id: str) -> bool:
        """Whether this exact provider/subject pair is bound."""
        return Credential(provider=provider, subject_id=subject_id) in self.credentials

    def without(self, provider: ProviderKind) -> "CredentialSet":
        """Set left after unlinking every credential of the given kind."""
        return self.model_copy(
            update={
                "credentials": frozenset(
                    c for c in self.credentials if c.provider is not provider
                )
            }
        )

    def with_credential(self, credential: Credential) -> "CredentialSet":
        """Set after binding one more credential."""
        return self.model_copy(
            update={"credentials": self.credentials | {credential}}
        )


class CurrentIdentity(DomainModel):
    """What the identity provider reports about the signed-in account."""

    account_id: AccountId
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    credentials: CredentialSet
