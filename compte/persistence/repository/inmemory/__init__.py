"""In-memory repository implementations for testing."""

from .partition import InMemoryPartitionRepository
from .profile import InMemoryProfileRepository

__all__ = [
    "InMemoryPartitionRepository",
    "InMemoryProfileRepository",
]
