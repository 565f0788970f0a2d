"""Redis implementation of RegistryStore.

Each record lives under its own key (``registry:<kind>:<ident>``) as a
JSON document.  A transaction uses optimistic locking:

  - every read WATCHes the key it touches
  - writes are buffered and flushed in one MULTI/EXEC at commit
  - if another client modified a watched key in between, EXEC aborts and
    the operation fails with StoreConflict; nothing was written

Reads always go to Redis, so a transaction sees its own buffered writes
only through the staging dict below.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from redis.exceptions import WatchError

from cert_registry.core.errors import StoreConflict
from cert_registry.repos.registry_store import (
    StoreKey,
    StoreTransaction,
    decode_value,
    encode_value,
)

logger = logging.getLogger(__name__)

_REMOVED = object()


class _RedisTransaction:
    def __init__(self, pipe, prefix: str) -> None:
        self._pipe = pipe
        self._prefix = prefix
        self._writes: dict[StoreKey, Any] = {}

    def _name(self, key: StoreKey) -> str:
        if key.ident:
            return f"{self._prefix}{key.kind.value}:{key.ident}"
        return f"{self._prefix}{key.kind.value}"

    async def get(self, key: StoreKey) -> Any | None:
        if key in self._writes:
            value = self._writes[key]
            return None if value is _REMOVED else value
        name = self._name(key)
        await self._pipe.watch(name)
        raw = await self._pipe.get(name)
        if raw is None:
            return None
        return decode_value(key, json.loads(raw))

    async def has(self, key: StoreKey) -> bool:
        return await self.get(key) is not None

    async def set(self, key: StoreKey, value: Any) -> None:
        self._writes[key] = value

    async def remove(self, key: StoreKey) -> None:
        self._writes[key] = _REMOVED

    async def commit(self) -> None:
        if not self._writes:
            return
        self._pipe.multi()
        for key, value in self._writes.items():
            if value is _REMOVED:
                self._pipe.delete(self._name(key))
            else:
                self._pipe.set(self._name(key), json.dumps(encode_value(key, value)))
        try:
            await self._pipe.execute()
        except WatchError:
            logger.warning("Registry transaction aborted by concurrent writer")
            raise StoreConflict() from None


class RedisRegistryStore:
    """Satisfies the RegistryStore Protocol using Redis."""

    _PREFIX = "registry:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        # Serialises transactions from this process; WATCH covers other processes.
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        async with self._lock:
            async with self._redis.pipeline(transaction=True) as pipe:
                tx = _RedisTransaction(pipe, self._PREFIX)
                yield tx
                await tx.commit()

    async def ping(self) -> bool:
        return bool(await self._redis.ping())
