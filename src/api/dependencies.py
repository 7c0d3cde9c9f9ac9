# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get school database sessions
- Get the application-wide promotion cycle lock
- Get service instances

Example:
    @router.post("/cycles")
    async def trigger_cycle(
        service: PromotionService = Depends(get_promotion_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.domains.promotion.lock import CycleLock, LocalCycleLock, RedisCycleLock
from src.domains.promotion.service import PromotionService
from src.domains.promotion.store import SqlSchoolStore
from src.infrastructure.cache import RedisError, get_redis
from src.infrastructure.database import (
    DatabaseError,
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
)

logger = logging.getLogger(__name__)

# Cycle lock singleton, shared by every request of the process
_cycle_lock: CycleLock | None = None


async def init_db() -> None:
    """Initialize the school database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the school database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get school database session.

    Yields:
        AsyncSession for the school database.

    Raises:
        HTTPException: If the database is not initialized.
    """
    try:
        get_sessionmaker()
    except DatabaseError as e:
        logger.error("School database unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="School database not initialized",
        ) from e

    async with get_session() as session:
        yield session


def get_cycle_lock() -> CycleLock:
    """Get the promotion cycle lock.

    The backend is chosen by PROMOTION_LOCK_BACKEND: an in-process lock,
    or a Redis lock shared by every API worker.

    Raises:
        HTTPException: If the Redis backend is configured but Redis is
            not initialized.
    """
    global _cycle_lock

    if _cycle_lock is None:
        settings = get_settings().promotion
        if settings.lock_backend == "redis":
            try:
                redis = get_redis()
            except RedisError as e:
                logger.error("Promotion lock backend unavailable: %s", e)
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Promotion lock backend not available",
                ) from e
            _cycle_lock = RedisCycleLock(
                redis,
                key=settings.lock_key,
                ttl_seconds=settings.lock_ttl_seconds,
            )
        else:
            _cycle_lock = LocalCycleLock()

        logger.info("Promotion cycle lock backend: %s", settings.lock_backend)

    return _cycle_lock


def reset_cycle_lock() -> None:
    """Drop the lock singleton, the next request builds a new one."""
    global _cycle_lock
    _cycle_lock = None


def get_promotion_service(
    db: AsyncSession = Depends(get_db),
    lock: CycleLock = Depends(get_cycle_lock),
) -> PromotionService:
    """Get promotion service instance.

    Args:
        db: School database session.
        lock: Promotion cycle lock.

    Returns:
        Configured PromotionService instance.
    """
    settings = get_settings().promotion
    return PromotionService(
        store=SqlSchoolStore(db),
        lock=lock,
        max_ordinal=settings.max_ordinal,
        terminal_class_name=settings.terminal_class_name,
    )
