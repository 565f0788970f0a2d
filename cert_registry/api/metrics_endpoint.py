"""Prometheus metrics endpoint.

Returns every metric in core/metrics.py in the Prometheus text exposition
format (not JSON).  Restrict access at the ingress in production: issue
and rejection rates reveal registry activity.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
