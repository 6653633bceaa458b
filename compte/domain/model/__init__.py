"""Domain model entities for compte."""

from compte.domain.model.credential import Credential, CredentialSet, CurrentIdentity
from compte.domain.model.partition import PartitionMarker
from compte.domain.model.profile import Profile

__all__ = [
    "Credential",
    "CredentialSet",
    "CurrentIdentity",
    "PartitionMarker",
    "Profile",
]
