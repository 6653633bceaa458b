"""Profile repository implementation using PostgreSQL."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import case, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compte.domain.model.profile import Profile
from compte.domain.repository.profile import ProfileRepository
from compte.domain.value import AccountId, UsageMode
from compte.persistence.errors import translate_store_errors
from compte.persistence.mappers import profile_fields_to_row, row_to_profile
from compte.persistence.tables import profiles_table


class PostgresProfileRepository(ProfileRepository):
    """PostgreSQL implementation of ProfileRepository.

    Every call runs in its own short transaction, so a failed attempt
    leaves nothing behind for the next retry to trip over.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self.session_factory = session_factory

    async def find_by_account_id(self, account_id: AccountId) -> Optional[Profile]:
        """Get profile by account id.

        Args:
            account_id: Provider-issued account id

        Returns:
            Profile if found, None otherwise
        """
        stmt = select(profiles_table).where(profiles_table.c.account_id == account_id)

        async with translate_store_errors("profiles.read"):
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                row = result.mappings().first()

        if not row:
            return None

        return row_to_profile(dict(row))

    async def merge(self, account_id: AccountId, fields: dict[str, Any]) -> Profile:
        """Upsert only the named profile fields.

        On conflict ``created_at`` is never rewritten and ``usage_mode`` is
        only taken from the new row while the stored one is unset; the row
        lock taken by the upsert makes that check atomic.

        Args:
            account_id: Provider-issued account id
            fields: Profile field names to values

        Returns:
            The row as stored after the write
        """
        values = profile_fields_to_row(fields)
        stmt = pg_insert(profiles_table).values(account_id=account_id, **values)

        set_: dict[str, Any] = {
            name: stmt.excluded[name] for name in values if name != "created_at"
        }
        if "usage_mode" in set_:
            set_["usage_mode"] = case(
                (
                    profiles_table.c.usage_mode == UsageMode.UNSET.value,
                    stmt.excluded.usage_mode,
                ),
                else_=profiles_table.c.usage_mode,
            )

        if set_:
            stmt = stmt.on_conflict_do_update(
                index_elements=[profiles_table.c.account_id], set_=set_
            )
        else:
            stmt = stmt.on_conflict_do_nothing(
                index_elements=[profiles_table.c.account_id]
            )

        async with translate_store_errors("profiles.merge"):
            async with self.session_factory() as session, session.begin():
                await session.execute(stmt)
                result = await session.execute(
                    select(profiles_table).where(
                        profiles_table.c.account_id == account_id
                    )
                )
                row = result.mappings().one()

        return row_to_profile(dict(row))

    async def replace_usage_mode(
        self, account_id: AccountId, usage_mode: UsageMode, updated_at: datetime
    ) -> Optional[Profile]:
        """Overwrite the usage mode of an existing row.

        Args:
            account_id: Provider-issued account id
            usage_mode: New mode
            updated_at: Timestamp of the change

        Returns:
            Updated profile, None if no row exists
        """
        stmt = (
            update(profiles_table)
            .where(profiles_table.c.account_id == account_id)
            .values(usage_mode=usage_mode.value, updated_at=updated_at)
            .returning(*profiles_table.c)
        )

        async with translate_store_errors("profiles.replace_usage_mode"):
            async with self.session_factory() as session, session.begin():
                result = await session.execute(stmt)
                row = result.mappings().first()

        if not row:
            return None

        return row_to_profile(dict(row))
