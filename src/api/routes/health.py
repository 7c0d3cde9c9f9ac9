# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import time
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src import __version__
from src.core.config import get_settings
from src.infrastructure.cache import RedisError, get_redis
from src.infrastructure.database import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth | None = None
    redis: ComponentHealth | None = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: ComponentsHealth = Field(default_factory=ComponentsHealth)


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check the school database connection."""
    start = time.time()
    if not await check_database_connection():
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy", message="database unreachable")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


async def check_redis() -> ComponentHealth | None:
    """Check Redis, only when it backs the promotion cycle lock."""
    if get_settings().promotion.lock_backend != "redis":
        return None

    start = time.time()
    try:
        reachable = await get_redis().ping()
    except RedisError as e:
        logger.error("Redis health check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))

    if not reachable:
        return ComponentHealth(status="unhealthy", message="ping failed")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    Returns:
        HealthResponse with detailed status.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    uptime = int(time.time() - _server_start_time)

    db_health = await check_database()
    redis_health = await check_redis()

    component_statuses = [db_health.status]
    if redis_health is not None:
        component_statuses.append(redis_health.status)

    if all(s == "healthy" for s in component_statuses):
        overall_status = "healthy"
    else:
        overall_status = "unhealthy"

    return HealthResponse(
        status=overall_status,
        timestamp=now,
        version=__version__,
        environment=settings.environment,
        uptime_seconds=uptime,
        components=ComponentsHealth(database=db_health, redis=redis_health),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results.
    """
    checks: dict[str, Any] = {}
    all_ready = True

    db_health = await check_database()
    checks["database"] = {"status": db_health.status, "latency_ms": db_health.latency_ms}
    if db_health.status != "healthy":
        all_ready = False

    redis_health = await check_redis()
    if redis_health is not None:
        checks["redis"] = {"status": redis_health.status, "latency_ms": redis_health.latency_ms}
        if redis_health.status != "healthy":
            all_ready = False

    return ReadinessResponse(ready=all_ready, checks=checks)
