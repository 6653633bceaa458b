"""Repository interfaces for the compte domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from compte.domain.repository.partition import PartitionRepository
from compte.domain.repository.profile import ProfileRepository

__all__ = [
    "PartitionRepository",
    "ProfileRepository",
]
