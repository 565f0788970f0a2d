"""Event sinks for registry domain events.

The registry publishes exactly one event per successful issue or revoke,
after the store transaction has committed.  What happens next (queueing,
notification, delivery retries) belongs to the sink.
"""

from __future__ import annotations

import logging
from typing import Protocol

from cert_registry.models.events import RegistryEvent
from cert_registry.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "certificate_events"


class EventSink(Protocol):
    async def publish(self, event: RegistryEvent) -> None: ...


class InMemoryEventSink:
    """Collects events in a list.  Handy for tests and for embedding."""

    def __init__(self) -> None:
        self.events: list[RegistryEvent] = []

    async def publish(self, event: RegistryEvent) -> None:
        self.events.append(event)


class TaskQueueEventSink:
    """Hands events to the background worker via the task queue.

    Task payload: {"event": <event name>, "data": <event fields>}
    """

    def __init__(self, queue: TaskQueue, queue_name: str = EVENTS_QUEUE) -> None:
        self._queue = queue
        self._queue_name = queue_name

    async def publish(self, event: RegistryEvent) -> None:
        task = await self._queue.enqueue(
            self._queue_name,
            {"event": event.name, "data": event.to_payload()},
        )
        logger.debug(
            "Queued %s for certificate=%s task=%s", event.name, event.id, task.id
        )
