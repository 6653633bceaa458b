"""Partition marker repository implementation using PostgreSQL."""

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compte.domain.model.partition import PartitionMarker
from compte.domain.repository.partition import PartitionRepository
from compte.domain.value import AccountId
from compte.persistence.errors import translate_store_errors
from compte.persistence.mappers import (
    partition_marker_to_dict,
    row_to_partition_marker,
)
from compte.persistence.tables import partition_markers_table


class PostgresPartitionRepository(PartitionRepository):
    """PostgreSQL implementation of PartitionRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self.session_factory = session_factory

    async def mark(self, marker: PartitionMarker) -> None:
        """Insert the marker unless it is already there.

        Args:
            marker: Constant partition marker
        """
        stmt = (
            pg_insert(partition_markers_table)
            .values(**partition_marker_to_dict(marker))
            .on_conflict_do_nothing(
                index_elements=[
                    partition_markers_table.c.account_id,
                    partition_markers_table.c.partition,
                ]
            )
        )

        async with translate_store_errors("partition_markers.mark"):
            async with self.session_factory() as session, session.begin():
                await session.execute(stmt)

    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[PartitionMarker]:
        """Find all markers for an account.

        Args:
            account_id: Provider-issued account id

        Returns:
            List of markers ordered by partition name
        """
        stmt = (
            select(partition_markers_table)
            .where(partition_markers_table.c.account_id == account_id)
            .order_by(partition_markers_table.c.partition)
        )

        async with translate_store_errors("partition_markers.read"):
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.mappings().all()

        return [row_to_partition_marker(dict(row)) for row in rows]
