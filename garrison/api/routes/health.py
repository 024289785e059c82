"""Health check and metrics endpoints."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from garrison import __version__
from garrison.api import dependencies
from garrison.api.dependencies import SettingsDep
from garrison.api.models.health import ComponentHealth, HealthResponse
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _check_postgres() -> ComponentHealth:
    start = time.perf_counter()
    try:
        pool = await dependencies.get_postgres_pool()
        healthy = await pool.health_check()
    except Exception as e:
        return ComponentHealth(
            name="postgres",
            status="unhealthy",
            latency_ms=(time.perf_counter() - start) * 1000,
            message=str(e),
        )
    return ComponentHealth(
        name="postgres",
        status="healthy" if healthy else "unhealthy",
        latency_ms=(time.perf_counter() - start) * 1000,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Report service health.

    With the in-memory backend there are no external components to check.
    """
    components: list[ComponentHealth] = []
    if settings.storage.backend == "postgres":
        components.append(await _check_postgres())

    status = "healthy"
    if any(c.status == "unhealthy" for c in components):
        status = "degraded"

    logger.debug("health_check_request", status=status)
    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now(UTC),
        components=components,
    )


async def metrics() -> Response:
    """Expose Prometheus metrics.

    Mounted by register_routes at the configured path when metrics are enabled.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
