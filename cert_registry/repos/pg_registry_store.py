"""PostgreSQL implementation of RegistryStore."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, select, text
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cert_registry.core.errors import StoreConflict
from cert_registry.db.tables import RegistryEntryRow
from cert_registry.repos.registry_store import (
    StoreKey,
    StoreTransaction,
    decode_value,
    encode_value,
)

logger = logging.getLogger(__name__)

_SERIALIZATION_FAILURE = "40001"


class _PgTransaction:
    """Executes reads and writes immediately inside the open DB transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: StoreKey) -> Any | None:
        # Column select (not the entity) so the identity map never serves
        # a value that an upsert in this same transaction has replaced.
        stmt = select(RegistryEntryRow.value).where(
            RegistryEntryRow.kind == key.kind.value,
            RegistryEntryRow.ident == key.ident,
        )
        raw = (await self._session.execute(stmt)).scalar_one_or_none()
        if raw is None:
            return None
        return decode_value(key, raw)

    async def has(self, key: StoreKey) -> bool:
        return await self.get(key) is not None

    async def set(self, key: StoreKey, value: Any) -> None:
        encoded = encode_value(key, value)
        stmt = (
            insert(RegistryEntryRow)
            .values(kind=key.kind.value, ident=key.ident, value=encoded)
            .on_conflict_do_update(
                index_elements=[RegistryEntryRow.kind, RegistryEntryRow.ident],
                set_={"value": encoded},
            )
        )
        await self._session.execute(stmt)

    async def remove(self, key: StoreKey) -> None:
        stmt = delete(RegistryEntryRow).where(
            RegistryEntryRow.kind == key.kind.value,
            RegistryEntryRow.ident == key.ident,
        )
        await self._session.execute(stmt)


class PgRegistryStore:
    """Satisfies the RegistryStore Protocol using PostgreSQL via SQLAlchemy.

    Transactions run at SERIALIZABLE isolation: two operations that race
    on the same records (e.g. issuing the same id twice) cannot both
    commit.  The loser fails with StoreConflict and leaves no trace.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await session.connection(
                        execution_options={"isolation_level": "SERIALIZABLE"}
                    )
                    yield _PgTransaction(session)
            except DBAPIError as e:
                if getattr(e.orig, "sqlstate", None) == _SERIALIZATION_FAILURE:
                    logger.warning("Registry transaction lost a serialization race")
                    raise StoreConflict() from None
                raise

    async def ping(self) -> bool:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
