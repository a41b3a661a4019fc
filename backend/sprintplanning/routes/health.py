"""
Sprint Planning Backend — Health Check Route
==============================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the document store and reports the hub's subscriber count.

Status levels:
    - healthy:   store reachable (HTTP 200)
    - unhealthy: store unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from sprintplanning import __version__
from sprintplanning.dependencies import get_broadcaster, get_store
from sprintplanning.schemas.sprint_planning import HealthResponse
from sprintplanning.services.broadcast_base import BroadcastService
from sprintplanning.services.store_base import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    store: DocumentStore = Depends(get_store),
    broadcaster: BroadcastService = Depends(get_broadcaster),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    if not await store.health_check():
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: document store unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        hub_connections=broadcaster.connection_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
