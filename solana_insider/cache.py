"""
Caching layer for computed analyses and upstream lookups.

Two interchangeable backends are provided: an in-process TTL cache and a
Redis cache. ``AnalysisCache`` wraps either one and degrades every backend
failure to a miss, so the pipeline keeps working with the cache unreachable.
"""

import json
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Protocol, Tuple

from cachetools import TLRUCache
import redis.asyncio as redis

logger = logging.getLogger(__name__)


def cache_key(namespace: str, mint: str, *params: Any) -> str:
    """Build a cache key namespaced per logical endpoint.

    Args:
        namespace: Endpoint namespace (``search``, ``health``, ...)
        mint: Token mint or wallet address
        params: Optional secondary parameters (limit, timestamp bucket)

    Returns:
        Colon-separated cache key
    """
    parts = [namespace, mint] + [str(p) for p in params if p is not None]
    return ":".join(parts)


class CacheBackend(Protocol):
    """Minimal async key-value interface with per-entry TTL."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: int) -> None:
        ...

    async def close(self) -> None:
        ...


def _entry_expiry(key: str, entry: Tuple[Any, int], now: float) -> float:
    return now + entry[1]


class MemoryCacheBackend:
    """In-memory cache with a per-entry time-to-live."""

    def __init__(self, max_size: int = 2048, timer: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            max_size: Maximum number of entries before LRU eviction
            timer: Clock used for expiry
        """
        self._cache: TLRUCache = TLRUCache(maxsize=max_size, ttu=_entry_expiry, timer=timer)

    async def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        return entry[0]

    async def set(self, key: str, value: Any, ttl: int) -> None:
        self._cache[key] = (value, ttl)

    async def close(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


class RedisCacheBackend:
    """Redis-backed cache storing JSON-encoded values with SETEX."""

    def __init__(self, url: str, socket_timeout: float = 3.0):
        """Initialize the Redis client.

        Args:
            url: Redis connection URL
            socket_timeout: Socket timeout in seconds
        """
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout
        )

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        await self._client.setex(key, ttl, json.dumps(value))

    async def close(self) -> None:
        await self._client.aclose()


class AnalysisCache:
    """Cache facade that treats every backend failure as a miss."""

    def __init__(self, backend: Optional[CacheBackend] = None):
        """Initialize the facade.

        Args:
            backend: Cache backend, or None to run without a cache
        """
        self.backend = backend
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> Optional[Any]:
        """Get a value, returning None on miss or backend failure."""
        if self.backend is None:
            self.misses += 1
            return None
        try:
            value = await self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}, treating as miss: {str(e)}")
            value = None

        if value is None:
            self.misses += 1
            logger.debug(f"Cache miss for key: {key}")
        else:
            self.hits += 1
            logger.debug(f"Cache hit for key: {key}")
        return value

    async def set_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value; backend failures are logged and ignored."""
        if self.backend is None:
            return
        try:
            await self.backend.set(key, value, ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {str(e)}")

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: int,
        compute: Callable[[], Awaitable[Any]],
        skip_if: Optional[Callable[[Any], bool]] = None
    ) -> Any:
        """
        Return the cached value for ``key`` or compute and store it.

        Concurrent callers may both miss and both compute; the results are
        identical for identical upstream data.

        Args:
            key: Cache key
            ttl_seconds: Time to live for a freshly computed value
            compute: Coroutine factory producing the value
            skip_if: Predicate marking cached values that must be recomputed

        Returns:
            Cached or freshly computed value
        """
        cached = await self.get(key)
        if cached is not None and not (skip_if and skip_if(cached)):
            return cached

        value = await compute()
        await self.set_with_ttl(key, value, ttl_seconds)
        return value

    async def close(self) -> None:
        """Release backend resources."""
        if self.backend is None:
            return
        try:
            await self.backend.close()
        except Exception as e:
            logger.warning(f"Error closing cache backend: {str(e)}")


def create_cache(redis_url: Optional[str] = None, max_size: int = 2048) -> AnalysisCache:
    """Create the cache facade for the configured backend.

    Args:
        redis_url: Redis URL; the in-memory backend is used when unset
        max_size: Entry limit for the in-memory backend

    Returns:
        AnalysisCache instance
    """
    if redis_url:
        logger.info("Using Redis cache backend")
        return AnalysisCache(RedisCacheBackend(redis_url))
    logger.info("Using in-memory cache backend")
    return AnalysisCache(MemoryCacheBackend(max_size=max_size))
