"""Background worker process.

RUN:  python -m cert_registry.worker

Consumes the certificate_events queue that TaskQueueEventSink fills and
dispatches each event to its registered handler.  Handlers turn registry
events into recipient notices (issuance and revocation).  The registry
state they read is already committed when the event is queued.

A failed task is re-enqueued with exponential backoff (2s, 4s) and an
attempt counter in its payload.  After MAX_ATTEMPTS it is parked on
FAILED_QUEUE for inspection instead of being dropped.

In Docker/Kubernetes this is the same image with a different command:
  api:    uvicorn cert_registry.main:app --host 0.0.0.0 --port 8000
  worker: python -m cert_registry.worker
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

from cert_registry.core.config import SETTINGS
from cert_registry.core.logging import setup_logging
from cert_registry.core.metrics import EVENT_TASK_FAILURES
from cert_registry.services.event_sink import EVENTS_QUEUE
from cert_registry.services.registry import certificate_registry
from cert_registry.services.task_queue import Task, task_queue

EventHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")

MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 2.0
FAILED_QUEUE = f"{EVENTS_QUEUE}:failed"

HANDLERS: dict[str, EventHandler] = {}


def register_handler(event_name: str):
    """Decorator: register a coroutine as the handler for an event name."""

    def decorator(func):
        HANDLERS[event_name] = func
        return func

    return decorator


@register_handler("certificate_issued")
async def handle_certificate_issued(data: dict) -> None:
    """Send the recipient an issuance notice."""
    certificate = await certificate_registry.get_certificate(data["id"])
    logger.info(
        "Issuance notice: recipient=%s certificate=%s title=%r issuer=%s",
        data["recipient"],
        certificate.id,
        certificate.metadata.title,
        data["issuer"],
        extra={"certificate_id": certificate.id},
    )


@register_handler("certificate_revoked")
async def handle_certificate_revoked(data: dict) -> None:
    """Send the recipient a revocation notice."""
    certificate = await certificate_registry.get_certificate(data["id"])
    logger.info(
        "Revocation notice: recipient=%s certificate=%s title=%r revoked_by=%s at=%d",
        certificate.recipient,
        certificate.id,
        certificate.metadata.title,
        data["revoked_by"],
        data["revoked_at"],
        extra={"certificate_id": certificate.id},
    )


async def _retry_or_fail(task: Task, error: Exception) -> None:
    """Re-enqueue ``task`` with backoff, or park it once attempts run out."""
    attempts = task.payload.get("attempts", 0) + 1
    event_name = task.payload.get("event")

    if attempts >= MAX_ATTEMPTS:
        await task_queue.enqueue(
            FAILED_QUEUE,
            {**task.payload, "attempts": attempts, "error": repr(error)},
        )
        EVENT_TASK_FAILURES.labels(outcome="exhausted").inc()
        logger.error(
            "Task %s (%s) failed after %d attempts: %r",
            task.id,
            event_name,
            attempts,
            error,
        )
        return

    delay = BACKOFF_BASE_SECONDS * 2 ** (attempts - 1)
    await task_queue.enqueue(
        EVENTS_QUEUE,
        {**task.payload, "attempts": attempts, "retry_at": time.time() + delay},
    )
    EVENT_TASK_FAILURES.labels(outcome="retried").inc()
    logger.warning(
        "Task %s (%s) failed on attempt %d, retrying in %.0fs",
        task.id,
        event_name,
        attempts,
        delay,
    )


async def process_task(task: Task) -> bool:
    """Dispatch one task.  Returns False if it failed or was dropped."""
    event_name = task.payload.get("event")
    handler = HANDLERS.get(event_name)
    if handler is None:
        logger.warning("Task %s has unknown event=%r, dropped", task.id, event_name)
        return False

    retry_at = task.payload.get("retry_at")
    if retry_at is not None:
        wait = retry_at - time.time()
        if wait > 0:
            await asyncio.sleep(wait)

    try:
        await handler(task.payload.get("data", {}))
    except Exception as e:
        # Every failure is retried, NotFound included.
        logger.exception("Task %s (%s) failed", task.id, event_name)
        await _retry_or_fail(task, e)
        return False

    logger.info("Task %s (%s) completed", task.id, event_name)
    return True


async def run_worker() -> None:
    logger.info("Worker started, listening on queue: %s", EVENTS_QUEUE)
    while True:
        task = await task_queue.dequeue(EVENTS_QUEUE, timeout=1)
        if task is None:
            # The in-memory queue returns immediately; don't spin.
            await asyncio.sleep(0.5)
            continue
        await process_task(task)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
