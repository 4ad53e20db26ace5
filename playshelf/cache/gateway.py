"""Cache-aside gateway for catalog searches, item details, platforms and tokens.

Every public method is total: backend failures are logged and reported as
a miss (reads) or ignored (writes). The cache only ever saves provider
round-trips; it is never needed for a correct answer.
"""

from typing import List, Optional, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

from ..common.config import CacheConfig
from ..common.string_utils import normalize_query
from ..parsers.models import CatalogItem, PlatformRecord
from .backends import CacheBackend

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_SEARCH_ADAPTER = TypeAdapter(List[CatalogItem])
_ITEM_ADAPTER = TypeAdapter(CatalogItem)
_PLATFORM_ADAPTER = TypeAdapter(PlatformRecord)


class CatalogCache:
    """
    Typed cache in front of a byte-oriented backend.

    Keys are ``<prefix><kind>:<id>`` with kinds ``search``, ``item``,
    ``platform`` and ``token``. Search queries are normalized before they
    become keys, on both the read and the write path.

    Example:
        >>> cache = CatalogCache(MemoryCacheBackend(), CacheConfig())
        >>> await cache.cache_search("Half-Life 2", items)
        >>> await cache.get_cached_search("  half-life   2 ")
    """

    def __init__(self, backend: CacheBackend, config: Optional[CacheConfig] = None):
        self.backend = backend
        self.config = config or CacheConfig()
        self.prefix = self.config.key_prefix

    # ==================== Keys ====================

    def search_key(self, query: str) -> str:
        return f"{self.prefix}search:{normalize_query(query)}"

    def item_key(self, provider_id: int) -> str:
        return f"{self.prefix}item:{provider_id}"

    def platform_key(self, platform_id: int) -> str:
        return f"{self.prefix}platform:{platform_id}"

    def token_key(self, account_id: str) -> str:
        return f"{self.prefix}token:{account_id}"

    # ==================== Search ====================

    async def get_cached_search(self, query: str) -> Optional[List[CatalogItem]]:
        """Cached search results for ``query``, or None on a miss."""
        return await self._read(self.search_key(query), _SEARCH_ADAPTER)

    async def cache_search(
        self, query: str, items: List[CatalogItem], ttl: Optional[int] = None
    ) -> None:
        """Store search results for ``query``."""
        await self._write(
            self.search_key(query),
            _SEARCH_ADAPTER.dump_json(items),
            ttl if ttl is not None else self.config.search_ttl,
        )

    # ==================== Items ====================

    async def get_cached_item(self, provider_id: int) -> Optional[CatalogItem]:
        """Cached details for a provider game id, or None on a miss."""
        return await self._read(self.item_key(provider_id), _ITEM_ADAPTER)

    async def cache_item(
        self, provider_id: int, item: CatalogItem, ttl: Optional[int] = None
    ) -> None:
        """Store details for a provider game id."""
        await self._write(
            self.item_key(provider_id),
            item.model_dump_json().encode("utf-8"),
            ttl if ttl is not None else self.config.item_ttl,
        )

    # ==================== Platforms ====================

    async def get_cached_aux(self, platform_id: int) -> Optional[PlatformRecord]:
        """Cached platform record, or None on a miss."""
        return await self._read(self.platform_key(platform_id), _PLATFORM_ADAPTER)

    async def cache_aux(
        self, platform_id: int, record: PlatformRecord, ttl: Optional[int] = None
    ) -> None:
        """Store a platform record."""
        await self._write(
            self.platform_key(platform_id),
            record.model_dump_json().encode("utf-8"),
            ttl if ttl is not None else self.config.platform_ttl,
        )

    # ==================== Tokens ====================

    async def get_cached_token(self, account_id: str) -> Optional[str]:
        """Cached bearer token for an account, or None on a miss."""
        key = self.token_key(account_id)
        raw = await self._get_raw(key)
        if raw is None:
            return None
        try:
            token = raw.decode("utf-8")
        except UnicodeDecodeError:
            await self._evict(key)
            return None
        return token or None

    async def cache_token(self, account_id: str, token: str, expires_in: int) -> None:
        """
        Store a bearer token for the part of its lifetime that is safely usable.

        The TTL is ``expires_in`` minus the expiry buffer, capped at the
        configured maximum. Tokens that would expire within the buffer are
        not stored at all.

        Args:
            account_id: Account the token belongs to
            token: Bearer token
            expires_in: Lifetime reported by the provider, in seconds
        """
        buffer = self.config.token_expiry_buffer
        if expires_in <= buffer:
            logger.debug(
                "token_not_cached",
                account_id=account_id,
                expires_in=expires_in,
                buffer=buffer,
            )
            return
        ttl = min(expires_in - buffer, self.config.token_ttl_cap)
        await self._write(self.token_key(account_id), token.encode("utf-8"), ttl)

    async def invalidate_token(self, account_id: str) -> None:
        """Drop the cached token so the next access fetches a fresh one."""
        await self._evict(self.token_key(account_id))

    # ==================== Backend access ====================

    async def _get_raw(self, key: str) -> Optional[bytes]:
        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning("cache_backend_error", operation="get", key=key, error=str(e))
            return None
        if raw is None:
            logger.debug("cache_miss", key=key)
        return raw

    async def _read(self, key: str, adapter: "TypeAdapter[T]") -> Optional[T]:
        raw = await self._get_raw(key)
        if raw is None:
            return None
        try:
            value = adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("cache_entry_corrupted", key=key, error_count=e.error_count())
            await self._evict(key)
            return None
        logger.debug("cache_hit", key=key)
        return value

    async def _write(self, key: str, value: bytes, ttl: int) -> None:
        if ttl <= 0:
            logger.debug("cache_set_skipped", key=key, ttl=ttl)
            return
        try:
            await self.backend.set(key, value, ttl)
        except Exception as e:
            logger.warning("cache_backend_error", operation="set", key=key, error=str(e))
            return
        logger.debug("cache_set", key=key, ttl=ttl)

    async def _evict(self, key: str) -> None:
        try:
            await self.backend.delete(key)
        except Exception as e:
            logger.warning("cache_backend_error", operation="delete", key=key, error=str(e))

    async def close(self) -> None:
        """Close the underlying backend."""
        try:
            await self.backend.close()
        except Exception as e:
            logger.warning("cache_backend_error", operation="close", error=str(e))
