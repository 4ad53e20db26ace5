"""Catalog cache: key-value backends and the typed cache gateway."""

from .backends import CacheBackend, MemoryCacheBackend, RedisCacheBackend, create_cache_backend
from .gateway import CatalogCache

__all__ = [
    "CacheBackend",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "create_cache_backend",
    "CatalogCache",
]
