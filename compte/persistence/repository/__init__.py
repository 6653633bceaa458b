"""PostgreSQL repository implementations."""

from compte.persistence.repository.partition import PostgresPartitionRepository
from compte.persistence.repository.profile import PostgresProfileRepository

__all__ = [
    "PostgresPartitionRepository",
    "PostgresProfileRepository",
]
