"""Domain value objects for compte.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and business logic.
"""

from enum import Enum

from pydantic import SecretStr, model_validator

from compte.domain.value.common import ValueObject
from compte.domain.value.identifiers import AccountId


class PartitionName(str, Enum):
    """Isolated collection of domain data scoped to one usage mode."""

    PERSONAL = "personal"
    BUSINESS = "business"


class UsageMode(str, Enum):
    """How the account partitions its financial data.

    Chosen once, normally at first profile creation. Once stored as
    personal, business or both it survives every later sign-in.
    """

    PERSONAL = "personal"
    BUSINESS = "business"
    BOTH = "both"
    UNSET = "unset"

    @property
    def is_set(self) -> bool:
        """Whether a choice has been made."""
        return self is not UsageMode.UNSET

    @property
    def partitions(self) -> tuple[PartitionName, ...]:
        """Partitions implied by this mode (none when unset)."""
        if self is UsageMode.BOTH:
            return (PartitionName.PERSONAL, PartitionName.BUSINESS)
        if self is UsageMode.PERSONAL:
            return (PartitionName.PERSONAL,)
        if self is UsageMode.BUSINESS:
            return (PartitionName.BUSINESS,)
        return ()

    def resolve(self, requested: "UsageMode | None") -> "UsageMode":
        """Apply the write-once rule against a stored mode.

        Args:
            requested: Mode supplied by the current sign-in, if any

        Returns:
            The stored mode when already set, otherwise the requested one
            (or UNSET when nothing was requested)
        """
        if self.is_set:
            return self
        if requested is None:
            return UsageMode.UNSET
        return requested


class ProviderKind(str, Enum):
    """Sign-in methods, keyed by the identity provider's provider id."""

    PASSWORD = "password"
    GOOGLE = "google.com"
    APPLE = "apple.com"
    GITHUB = "github.com"
    MICROSOFT = "microsoft.com"
    FACEBOOK = "facebook.com"
    PHONE = "phone"

    @property
    def is_federated(self) -> bool:
        """Whether credentials come from an external OAuth/OIDC IdP."""
        return self not in (ProviderKind.PASSWORD, ProviderKind.PHONE)


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the core.

    Provider and store specific codes are mapped onto these at the adapter
    and persistence boundaries.
    """

    TRANSIENT = "transient"
    PERMISSION = "permission"
    REAUTH_REQUIRED = "reauth-required"
    ALREADY_IN_USE = "already-in-use"
    POPUP_CANCELLED = "popup-cancelled"
    UNSUPPORTED = "unsupported"
    INVALID_CREDENTIAL = "invalid-credential"
    UNEXPECTED = "unexpected"

    @property
    def retryable(self) -> bool:
        """Only transient failures can succeed on an automatic retry."""
        return self is ErrorKind.TRANSIENT


class DenialReason(str, Enum):
    """Machine-readable reasons for a refused credential change."""

    WOULD_STRAND_ACCOUNT = "would-strand-account"
    CROSS_ACCOUNT_LINK_UNSUPPORTED = "cross-account-link-unsupported"

    @property
    def remediation(self) -> str:
        """What the user can do about it."""
        if self is DenialReason.WOULD_STRAND_ACCOUNT:
            return (
                "This is the only sign-in method on the account. "
                "Link another sign-in method first, then remove this one."
            )
        return (
            "This sign-in method belongs to a different account. Sign in with "
            "the account you want to keep and link a sign-in method that is "
            "not used anywhere else."
        )


class IdentityContext(ValueObject):
    """Explicit identity of the caller, passed into every core call."""

    account_id: AccountId
    id_token: SecretStr | None = None  # Provider-issued ID token for this session


class IdentityClaims(ValueObject):
    """Claims observed on a completed sign-in."""

    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    requested_usage_mode: UsageMode | None = None


class CredentialMaterial(ValueObject):
    """Material needed by the identity provider to bind a new credential.

    Password credentials carry email and password. Federated credentials
    carry the IdP token obtained client-side, plus what the client learned
    about it (subject and the account the popup resolved to).
    """

    provider: ProviderKind
    email: str | None = None
    password: SecretStr | None = None
    id_token: SecretStr | None = None
    access_token: SecretStr | None = None
    subject_id: str | None = None
    candidate_account_id: AccountId | None = None

    @model_validator(mode="after")
    def check_material(self) -> "CredentialMaterial":
        """Ensure the fields required by the provider kind are present."""
        if self.provider is ProviderKind.PASSWORD:
            if not self.email or self.password is None:
                raise ValueError("Password credentials require email and password")
        elif self.provider.is_federated:
            if self.id_token is None and self.access_token is None:
                raise ValueError(
                    f"{self.provider.value} credentials require an id_token or access_token"
                )
        return self
