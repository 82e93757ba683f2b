import logging
import time
from typing import Protocol

from cachetools import TLRUCache
from redis.asyncio import Redis, RedisError

from app.core.config import Settings
from app.core.errors import CacheFailure

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """
    Volatile key-value store with per-entry TTL.

    Implementations raise ``CacheFailure`` for every backend error.
    Deleting an absent key is not an error.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl: float) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


class RedisCacheStore:
    """Shared cache on Redis; keys are namespaced automatically."""

    def __init__(self, redis: Redis, namespace: str = ""):
        self._redis = redis
        self._namespace = namespace

    @classmethod
    async def connect(cls, settings: Settings) -> "RedisCacheStore":
        redis = Redis.from_url(
            settings.redis_dsn,
            max_connections=settings.redis_pool_size,
            socket_connect_timeout=5,
            socket_timeout=settings.redis_socket_timeout_seconds,
            socket_keepalive=True,
            health_check_interval=30,
        )
        try:
            await redis.ping()
        except RedisError as e:
            await redis.aclose()
            raise CacheFailure(f"Redis unreachable: {e}") from e
        logger.info("Redis connection established")
        return cls(redis, namespace=settings.cache_namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._redis.get(self._key(key))
        except RedisError as e:
            raise CacheFailure(f"Redis GET error: {e}") from e

    async def set(self, key: str, value: bytes, ttl: float) -> None:
        try:
            await self._redis.set(self._key(key), value, px=max(int(ttl * 1000), 1))
        except RedisError as e:
            raise CacheFailure(f"Redis SET error: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except RedisError as e:
            raise CacheFailure(f"Redis DELETE error: {e}") from e

    async def close(self) -> None:
        try:
            await self._redis.aclose()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis: {e}")


def _expires_at(_key, entry, now):
    return now + entry[1]


class MemoryCacheStore:
    """
    Process-local cache with per-entry expiry.

    Only coherent within a single worker process; use Redis when running
    more than one.
    """

    def __init__(self, maxsize: int = 2048, timer=time.monotonic):
        self._cache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=timer)

    async def get(self, key: str) -> bytes | None:
        entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: bytes, ttl: float) -> None:
        self._cache[key] = (value, ttl)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def close(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


async def build_cache_store(settings: Settings) -> CacheStore | None:
    """
    Build the configured cache store.

    Returns None when caching is disabled, or when Redis cannot be reached
    at startup (degraded operation: every list read goes to the database).
    """
    if not settings.cache_enabled:
        logger.info("Task list cache disabled")
        return None

    if settings.cache_backend == "memory":
        logger.info("Using process-local task list cache")
        return MemoryCacheStore(maxsize=settings.memory_cache_maxsize)

    try:
        return await RedisCacheStore.connect(settings)
    except CacheFailure as e:
        logger.error(f"Redis initialization failed, caching disabled: {e}")
        return None
