# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client used for cross-process locks.

The promotion engine only needs Redis when several API processes share
one school database: the single-flight guard around a promotion cycle is
then a Redis key instead of an in-process asyncio lock.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    # Initialize at startup
    await init_redis(settings)

    redis = get_redis()
    if await redis.acquire_lock("promotion:cycle:lock", token, ttl_seconds=900):
        try:
            ...
        finally:
            await redis.release_lock("promotion:cycle:lock", token)
"""

from typing import TYPE_CHECKING, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state
_redis_client: Optional["RedisClient"] = None

# Deletes the key only while it still holds the caller's token, so an
# expired-and-reacquired lock is never released by its previous owner.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the Redis error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis client with lock primitives.

    Attributes:
        pool: The Redis connection pool.
    """

    def __init__(self, settings: "Settings") -> None:
        """Initialize the Redis client.

        Args:
            settings: Application settings containing Redis configuration.
        """
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the Redis connection pool.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)

            # Verify connection
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        """Ensure the client is connected.

        Raises:
            RedisError: If not connected.
        """
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    async def acquire_lock(self, key: str, token: str, ttl_seconds: int) -> bool:
        """Try to take a lock without waiting.

        Args:
            key: Lock key.
            token: Owner token stored as the key value.
            ttl_seconds: Expiry bounding a holder that died without releasing.

        Returns:
            True if the lock was taken, False if someone else holds it.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            result = await redis.set(key, token, nx=True, ex=ttl_seconds)
            return bool(result)
        except BaseRedisError as e:
            raise RedisError(f"Failed to acquire lock: {key}", e) from e

    async def release_lock(self, key: str, token: str) -> bool:
        """Release a lock held with the given token.

        Args:
            key: Lock key.
            token: Owner token used when acquiring.

        Returns:
            True if the lock was released, False if it was no longer ours.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            result = await redis.eval(_RELEASE_SCRIPT, 1, key, token)
            return bool(result)
        except BaseRedisError as e:
            raise RedisError(f"Failed to release lock: {key}", e) from e

    # ========== Health check ==========

    async def ping(self) -> bool:
        """Check if Redis is reachable.

        Returns:
            True if Redis responds to ping, False otherwise.
        """
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False


# ========== Module-level functions ==========


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client.

    This should be called once at application startup.

    Args:
        settings: Application settings containing Redis configuration.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    _redis_client = RedisClient(settings)
    await _redis_client.connect()


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client
