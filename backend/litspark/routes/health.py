"""
LitSpark Uploads — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   The service is only useful if it can write uploads, so "healthy" means
       both storage partitions exist and are writable. The check never
       creates anything; partitions are made by the startup hook.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   both partitions writable (HTTP 200)
    - unhealthy: at least one partition unavailable (HTTP 503)
"""

import logging
import os
import time
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from litspark import __version__
from litspark.schemas.upload import HealthResponse
from litspark.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


def _partition_status(root: Path) -> str:
    """Read-only probe; the partitions are created by the startup hook."""
    if not root.is_dir():
        logger.warning("Health check: partition %s is missing", root)
        return "unavailable"
    if not os.access(root, os.W_OK):
        logger.warning("Health check: partition %s is not writable", root)
        return "unavailable"
    return "writable"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "A storage partition is unavailable", "model": HealthResponse}},
)
async def health_check():
    public_status = _partition_status(file_service.public_root)
    private_status = _partition_status(file_service.private_root)
    healthy = public_status == private_status == "writable"

    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        public_storage=public_status,
        private_storage=private_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if healthy:
        return body
    return JSONResponse(status_code=503, content=body.model_dump())
