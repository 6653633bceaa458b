"""Domain value objects for compte."""

from compte.domain.value.decision import LinkDecision
from compte.domain.value.identifiers import AccountId
from compte.domain.value.policy import RetryPolicy
from compte.domain.value.types import (
    CredentialMaterial,
    DenialReason,
    ErrorKind,
    IdentityClaims,
    IdentityContext,
    PartitionName,
    ProviderKind,
    UsageMode,
)

__all__ = [
    # Identifiers
    "AccountId",
    # Types
    "CredentialMaterial",
    "DenialReason",
    "ErrorKind",
    "IdentityClaims",
    "IdentityContext",
    "LinkDecision",
    "PartitionName",
    "ProviderKind",
    "RetryPolicy",
    "UsageMode",
]
