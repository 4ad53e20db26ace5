"""Key-value cache backends used by the catalog cache gateway.

Backends store raw bytes with a per-key expiry. They are allowed to raise:
the gateway in front of them turns every backend failure into a cache miss
or a silent no-op.
"""

import asyncio
import time
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

import redis.asyncio as aioredis
import structlog

from ..common.config import CacheConfig
from ..common.single_flight import SingleFlight

logger = structlog.get_logger(__name__)


@runtime_checkable
class CacheBackend(Protocol):
    """Byte-oriented key-value store with expiring keys."""

    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None if the key is absent or expired."""
        ...

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""
        ...

    async def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...


class MemoryCacheBackend:
    """
    In-process cache backend with per-entry TTL.

    Entries are evicted oldest-first once ``max_entries`` is reached.
    Suitable for tests and single-process deployments.
    """

    def __init__(self, max_entries: int = 10000):
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[bytes, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[bytes]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        async with self._lock:
            now = time.monotonic()
            expired_keys = [k for k, (_, exp) in self._entries.items() if exp <= now]
            for k in expired_keys:
                del self._entries[k]

            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]

            self._entries[key] = (value, now + ttl_seconds)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def close(self) -> None:
        async with self._lock:
            self._entries.clear()

    @property
    def size(self) -> int:
        """Current number of entries (expired ones included until touched)."""
        return len(self._entries)


class RedisCacheBackend:
    """
    Redis cache backend using ``redis.asyncio``.

    The connection is opened lazily on first use. Concurrent first callers
    share a single connect attempt; if it fails the attempt is forgotten
    and the next call tries again.

    Example:
        >>> backend = RedisCacheBackend("redis://localhost:6379/0")
        >>> await backend.set("igdb:item:1942", b"{...}", 3600)
    """

    _CONNECT_KEY = "connect"

    def __init__(
        self,
        url: str,
        client_factory: Optional[Callable[[], aioredis.Redis]] = None,
    ):
        """
        Initialize the backend without connecting.

        Args:
            url: Redis connection URL
            client_factory: Optional callable building the client (used by tests)
        """
        self.url = url
        self._client_factory = client_factory or (
            lambda: aioredis.from_url(url, decode_responses=False)
        )
        self._client: Optional[aioredis.Redis] = None
        self._connecting = SingleFlight()

    async def _get_client(self) -> aioredis.Redis:
        if self._client is not None:
            return self._client
        return await self._connecting.do(self._CONNECT_KEY, self._connect)

    async def _connect(self) -> aioredis.Redis:
        client = self._client_factory()
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            logger.warning("redis_connect_failed")
            raise
        self._client = client
        logger.info("redis_connected")
        return client

    async def get(self, key: str) -> Optional[bytes]:
        client = await self._get_client()
        return await client.get(key)

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        client = await self._get_client()
        await client.setex(key, ttl_seconds, value)

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        await client.delete(key)

    async def close(self) -> None:
        """Close the connection, waiting for an in-flight connect first."""
        pending = self._connecting.pending(self._CONNECT_KEY)
        if pending is not None:
            await asyncio.wait([pending])
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("redis_closed")


def create_cache_backend(config: CacheConfig) -> CacheBackend:
    """
    Build the backend selected by ``config.backend``.

    Args:
        config: Cache configuration

    Returns:
        MemoryCacheBackend or RedisCacheBackend
    """
    if config.backend == "redis":
        return RedisCacheBackend(config.redis_url)
    return MemoryCacheBackend(max_entries=config.max_entries)
