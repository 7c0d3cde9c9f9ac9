# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Single-flight guard for promotion cycles.

Only one cycle may run at a time. Acquiring never waits: a second caller
is told immediately that a cycle is in progress.

- LocalCycleLock: asyncio lock, enough for a single API process.
- RedisCycleLock: Redis key with an owner token and an expiry, for
  several processes sharing one school database.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from src.infrastructure.cache.redis_client import RedisClient, RedisError

logger = logging.getLogger(__name__)


class CycleLock(ABC):
    """Non-blocking mutual exclusion for promotion cycles."""

    @abstractmethod
    async def acquire(self) -> bool:
        """Take the lock if free.

        Returns:
            True if taken, False if a cycle already holds it.
        """

    @abstractmethod
    async def release(self) -> None:
        """Release the lock taken by acquire()."""


class LocalCycleLock(CycleLock):
    """In-process lock."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire(self) -> bool:
        # No await between the check and the acquire: both run in one
        # event loop step, so two callers cannot both see it free.
        if self._lock.locked():
            return False
        await self._lock.acquire()
        return True

    async def release(self) -> None:
        if self._lock.locked():
            self._lock.release()


class RedisCycleLock(CycleLock):
    """Lock shared by every process connected to the same Redis.

    Attributes:
        key: Redis key holding the owner token.
        ttl_seconds: Expiry, bounds how long a crashed holder blocks cycles.
    """

    def __init__(self, redis: RedisClient, key: str, ttl_seconds: int) -> None:
        self._redis = redis
        self.key = key
        self.ttl_seconds = ttl_seconds
        self._token: str | None = None

    async def acquire(self) -> bool:
        """Take the Redis lock.

        Raises:
            RedisError: If Redis cannot be reached. The cycle must not run
                without the guard.
        """
        token = uuid4().hex
        acquired = await self._redis.acquire_lock(self.key, token, self.ttl_seconds)
        if acquired:
            self._token = token
        return acquired

    async def release(self) -> None:
        if self._token is None:
            return
        token, self._token = self._token, None
        try:
            released = await self._redis.release_lock(self.key, token)
        except RedisError as e:
            # The key expires on its own after ttl_seconds.
            logger.error("Failed to release promotion lock %s: %s", self.key, e)
            return
        if not released:
            logger.warning("Promotion lock %s expired before release", self.key)
