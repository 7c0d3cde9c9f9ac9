# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the promotion API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src import __version__
from src.api.dependencies import close_db, init_db, reset_cycle_lock
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.infrastructure.cache import RedisError, close_redis, init_redis
from src.infrastructure.database import DatabaseError
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Logging
    - School database connections
    - Redis, when it backs the promotion cycle lock

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting promotion API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    try:
        await init_db()
        logger.info("Database connections initialized")
    except DatabaseError as e:
        logger.warning("Failed to initialize database connections: %s", e)

    use_redis = settings.promotion.lock_backend == "redis"
    if use_redis:
        try:
            await init_redis(settings)
            logger.info("Redis connection initialized")
        except RedisError as e:
            logger.warning("Failed to initialize Redis: %s", e)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    reset_cycle_lock()

    if use_redis:
        await close_redis()
        logger.info("Redis connection closed")

    await close_db()
    logger.info("Database connections closed")

    logger.info("Shutting down promotion API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Academic Promotion API",
        description="End-of-year grade promotion and graduation",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
