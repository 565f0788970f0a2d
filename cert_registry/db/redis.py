"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured we create a real
connection pool; when it's None (local dev, tests) nothing here touches
the network and consumers fall back to in-memory implementations.

Redis carries two things for the registry:
  - the background task queue that delivers certificate events
  - the registry records themselves, when no DATABASE_URL is set
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from cert_registry.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # JSON documents come back as str
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis, mirrors lifespan_db()."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured, events use the in-memory queue")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        # Keep serving: /health reports the store as degraded and each
        # operation fails on its own rather than the whole process.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
