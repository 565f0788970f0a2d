"""Process-wide registry wiring.

Picks the RegistryStore implementation from configuration (PostgreSQL,
then Redis, then in-memory) and builds the two core services on top of
it.  API modules and the worker import these singletons; tests construct
their own instances around a fresh InMemoryRegistryStore.
"""

from __future__ import annotations

import logging

from cert_registry.db.engine import async_session_factory
from cert_registry.db.redis import redis_pool
from cert_registry.repos.pg_registry_store import PgRegistryStore
from cert_registry.repos.redis_registry_store import RedisRegistryStore
from cert_registry.repos.registry_store import InMemoryRegistryStore, RegistryStore
from cert_registry.services.authorization_store import AuthorizationStore
from cert_registry.services.certificate_registry import CertificateRegistry
from cert_registry.services.clock import SystemClock
from cert_registry.services.event_sink import TaskQueueEventSink
from cert_registry.services.task_queue import task_queue

logger = logging.getLogger(__name__)

if async_session_factory is not None:
    registry_store: RegistryStore = PgRegistryStore(async_session_factory)
elif redis_pool is not None:
    registry_store = RedisRegistryStore(redis_pool)
else:
    registry_store = InMemoryRegistryStore()

event_sink = TaskQueueEventSink(task_queue)

authorization_store = AuthorizationStore(registry_store)
certificate_registry = CertificateRegistry(
    registry_store,
    authorization_store,
    event_sink,
    SystemClock(),
)

logger.debug("Registry store: %s", type(registry_store).__name__)
