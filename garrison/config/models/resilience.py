"""Retry and circuit breaker configuration."""

from pydantic import BaseModel, Field


class ResilienceConfig(BaseModel):
    """Tuning for with_retry and CircuitBreaker around outbound channels."""

    max_retries: int = Field(default=3, ge=1, description="Attempts per call")
    retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Base backoff delay in seconds, doubled per attempt",
    )
    breaker_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that open the breaker",
    )
    breaker_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Seconds an open breaker waits before a half-open trial",
    )
