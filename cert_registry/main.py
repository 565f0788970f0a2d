from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cert_registry.api.certificates import router as certificates_router
from cert_registry.api.health import router as health_router
from cert_registry.api.metrics_endpoint import router as metrics_router
from cert_registry.api.registry import router as registry_router
from cert_registry.core.config import SETTINGS
from cert_registry.core.logging import setup_logging
from cert_registry.db.engine import lifespan_db
from cert_registry.db.redis import lifespan_redis
from cert_registry.middleware.metrics import MetricsMiddleware
from cert_registry.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="cert-registry",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last-added runs first: RequestContext (outermost) → Metrics → route handler,
# so every request has a request ID before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(registry_router)
app.include_router(certificates_router)

logger.info(
    "cert-registry started  env=%s log_level=%s port=%d store=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.store_backend,
    "on" if SETTINGS.is_dev else "off",
)
