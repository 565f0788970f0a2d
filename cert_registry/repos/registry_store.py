"""Transactional key-value store backing the registry.

The registry never touches a database directly.  It opens one transaction
per operation and reads/writes typed records through it:

  async with store.transaction() as tx:
      if await tx.has(certificate_key(cert_id)):
          ...
      await tx.set(certificate_key(cert_id), certificate)

A transaction either applies all of its writes (normal exit) or none of
them (exception).  Reads inside a transaction see that transaction's own
writes.

Values are domain objects in memory; the Redis and PostgreSQL stores use
``encode_value``/``decode_value`` to turn them into JSON-compatible data.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from cert_registry.models.certificate import Certificate


class KeyKind(str, Enum):
    CERTIFICATE = "certificate"
    ISSUER = "issuer"
    ADMIN = "admin"
    CERTIFICATE_COUNT = "certificate_count"
    RECIPIENT_INDEX = "recipient_index"


@dataclass(frozen=True, slots=True)
class StoreKey:
    kind: KeyKind
    ident: str = ""  # empty for singleton keys


ADMIN_KEY = StoreKey(KeyKind.ADMIN)
CERTIFICATE_COUNT_KEY = StoreKey(KeyKind.CERTIFICATE_COUNT)


def certificate_key(certificate_id: str) -> StoreKey:
    return StoreKey(KeyKind.CERTIFICATE, certificate_id)


def issuer_key(address: str) -> StoreKey:
    return StoreKey(KeyKind.ISSUER, address)


def recipient_index_key(recipient: str) -> StoreKey:
    return StoreKey(KeyKind.RECIPIENT_INDEX, recipient)


def encode_value(key: StoreKey, value: Any) -> Any:
    if key.kind is KeyKind.CERTIFICATE:
        return value.to_dict()
    if key.kind is KeyKind.RECIPIENT_INDEX:
        return list(value)
    return value


def decode_value(key: StoreKey, raw: Any) -> Any:
    if key.kind is KeyKind.CERTIFICATE:
        return Certificate.from_dict(raw)
    if key.kind is KeyKind.ISSUER:
        return bool(raw)
    if key.kind is KeyKind.ADMIN:
        return str(raw)
    if key.kind is KeyKind.CERTIFICATE_COUNT:
        return int(raw)
    return tuple(raw)


class StoreTransaction(Protocol):
    async def get(self, key: StoreKey) -> Any | None: ...
    async def has(self, key: StoreKey) -> bool: ...
    async def set(self, key: StoreKey, value: Any) -> None: ...
    async def remove(self, key: StoreKey) -> None: ...


class RegistryStore(Protocol):
    def transaction(self) -> AbstractAsyncContextManager[StoreTransaction]: ...
    async def ping(self) -> bool: ...


_REMOVED = object()


class _StagedTransaction:
    """Buffers writes until the owning store applies them."""

    def __init__(self, data: dict[StoreKey, Any]) -> None:
        self._data = data
        self._writes: dict[StoreKey, Any] = {}

    async def get(self, key: StoreKey) -> Any | None:
        if key in self._writes:
            value = self._writes[key]
            return None if value is _REMOVED else value
        return self._data.get(key)

    async def has(self, key: StoreKey) -> bool:
        return await self.get(key) is not None

    async def set(self, key: StoreKey, value: Any) -> None:
        self._writes[key] = value

    async def remove(self, key: StoreKey) -> None:
        self._writes[key] = _REMOVED

    def apply(self) -> None:
        for key, value in self._writes.items():
            if value is _REMOVED:
                self._data.pop(key, None)
            else:
                self._data[key] = value


class InMemoryRegistryStore:
    """In-memory store for tests and local dev.  State dies with the process."""

    def __init__(self) -> None:
        self._data: dict[StoreKey, Any] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        async with self._lock:
            tx = _StagedTransaction(self._data)
            yield tx
            tx.apply()

    async def ping(self) -> bool:
        return True
