"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from compte.config import Settings
from compte.domain.repository import PartitionRepository, ProfileRepository
from compte.persistence.database import create_engine, create_session_factory
from compte.persistence.repository import (
    PostgresPartitionRepository,
    PostgresProfileRepository,
)
from compte.util.di.base import ProviderBase
from compte.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        """Provide database engine, disposed when the container closes."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()
        logfire.info("Database engine disposed")

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    # Repositories open one short transaction per operation, so they can be
    # shared by background workflows that outlive a request
    @provide(scope=Scope.APP)
    def get_profile_repository(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> ProfileRepository:
        """Provide Profile repository."""
        return PostgresProfileRepository(session_factory)

    @provide(scope=Scope.APP)
    def get_partition_repository(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> PartitionRepository:
        """Provide Partition repository."""
        return PostgresPartitionRepository(session_factory)
