"""Health check response models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class ComponentHealth(BaseModel):
    """Health of a single dependency."""

    name: str
    status: Literal["healthy", "unhealthy"]
    latency_ms: float | None = None
    message: str | None = None


class HealthResponse(BaseModel):
    """Overall service health."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    timestamp: datetime
    components: list[ComponentHealth]
