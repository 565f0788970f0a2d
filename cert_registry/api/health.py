"""Health and readiness endpoints.

  /health (liveness): always 200 while the process can answer.  The body
    reports per-dependency status so an impaired store shows up as
    "degraded" without the orchestrator restarting the container.

  /ready (readiness): 503 when the registry store cannot be reached.  The
    load balancer stops routing here until the store is back; every
    registry operation would fail anyway.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from cert_registry.core.config import SETTINGS
from cert_registry.db.redis import redis_pool
from cert_registry.services.registry import registry_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _store_ok() -> bool:
    try:
        return await registry_store.ping()
    except Exception:
        logger.warning("Registry store ping failed", exc_info=True)
        return False


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {
        "store": "ok" if await _store_ok() else "degraded",
    }

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "degraded"
    else:
        checks["redis"] = "not_configured"

    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {
        "status": overall,
        "store_backend": SETTINGS.store_backend,
        "checks": checks,
    }


@router.get("/ready")
async def ready() -> Response:
    if not await _store_ok():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
