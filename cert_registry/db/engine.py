"""Async SQLAlchemy engine and session factory for PgRegistryStore.

Only built when DATABASE_URL is set.  PgRegistryStore opens one session
from ``async_session_factory`` per registry transaction; nothing else in
the service talks to the database.  Without DATABASE_URL both exports
are None and services.registry picks the Redis or in-memory store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from cert_registry.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base; db/tables.py registers RegistryEntryRow on it."""


engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None

if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
        # The worker can sit idle for long stretches between events.
        pool_pre_ping=True,
    )
    async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


@asynccontextmanager
async def lifespan_db():
    """Check the database on startup and dispose the pool on shutdown."""
    if engine is None:
        logger.info("No DATABASE_URL configured, registry uses Redis or memory")
        yield
        return

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database reachable: %s", engine.url.render_as_string())
    except Exception:
        # Serve anyway: /ready reports 503 until the store answers.
        logger.exception("Database unreachable on startup")

    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")
