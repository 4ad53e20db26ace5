"""Playshelf package initialization."""

from pathlib import Path
from typing import Optional

import structlog

from .common.config import (
    Config,
    CacheConfig,
    DatabaseConfig,
    HTTPConfig,
    IGDBConfig,
    ImportConfig,
    LoggingConfig,
    RateLimitConfig,
)
from .common.logging_config import setup_logging
from .common.rate_limiter import IntervalRateLimiter
from .common.concurrency_limiter import ConcurrencyLimiter
from .cache.backends import MemoryCacheBackend, RedisCacheBackend, create_cache_backend
from .cache.gateway import CatalogCache
from .api.exceptions import (
    ProviderError,
    ProviderAuthError,
    ProviderAuthenticationError,
    CredentialsNotFoundError,
    InvalidCredentialsError,
)
from .api.igdb_client import IGDBClient
from .api.twitch_auth import TwitchTokenManager
from .core.credentials import StaticCredentialStore
from .core.db import (
    CatalogRepository,
    SQLiteCatalogRepository,
    DatabaseError,
    DatabaseConnectionError,
    QueryError,
    PlatformNotFoundError,
)
from .parsers.models import (
    CatalogItem,
    BulkImportResult,
    Imported,
    ImportOutcome,
    ImportRequest,
    MatchKind,
    NeedsReview,
)
from .workflows.bulk_importer import BulkImporter
from .services import ImportService, ServiceError, ValidationError, NotFoundError

__version__ = "0.1.0"
__all__ = [
    "Config",
    "CacheConfig",
    "DatabaseConfig",
    "HTTPConfig",
    "IGDBConfig",
    "ImportConfig",
    "LoggingConfig",
    "RateLimitConfig",
    "IntervalRateLimiter",
    "ConcurrencyLimiter",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "CatalogCache",
    "ProviderError",
    "ProviderAuthError",
    "ProviderAuthenticationError",
    "CredentialsNotFoundError",
    "InvalidCredentialsError",
    "IGDBClient",
    "TwitchTokenManager",
    "StaticCredentialStore",
    "CatalogRepository",
    "SQLiteCatalogRepository",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "PlatformNotFoundError",
    "CatalogItem",
    "BulkImportResult",
    "Imported",
    "ImportOutcome",
    "ImportRequest",
    "MatchKind",
    "NeedsReview",
    "BulkImporter",
    "ImportService",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "configure",
    "get_config",
    "get_rate_limiter",
    "get_catalog_cache",
    "reset",
    "__version__",
]

# Module-level logger (not configured yet)
logger = structlog.get_logger(__name__)

# Process-wide state shared by every IGDB client
_config: Optional[Config] = None
_rate_limiter: Optional[IntervalRateLimiter] = None
_catalog_cache: Optional[CatalogCache] = None


def configure(config_path: Optional[Path] = None, config: Optional[Config] = None) -> Config:
    """
    Configure the playshelf package.

    Call once at startup. Loads the configuration, sets up logging and
    builds the shared rate limiter and catalog cache.

    Path Resolution:
    - If config is provided, use it as-is
    - If config_path is provided, load from that file
    - Otherwise load config.yaml from PLAYSHELF_CONFIG_DIR (or ~/.playshelf),
      falling back to defaults

    Args:
        config_path: Path to YAML configuration file
        config: Pre-loaded Config object (takes precedence over config_path)

    Returns:
        The active Config

    Example:
        >>> import playshelf
        >>> playshelf.configure(config_path=Path("config.yaml"))
        >>> limiter = playshelf.get_rate_limiter()
    """
    global _config, _rate_limiter, _catalog_cache

    from playshelf.common.config import _get_default_config_dir

    if config is not None:
        _config = config
    elif config_path is not None:
        _config = Config.from_yaml(config_path)
    else:
        default_config_path = _get_default_config_dir() / "config.yaml"
        if default_config_path.exists():
            _config = Config.from_yaml(default_config_path)
            config_path = default_config_path
        else:
            _config = Config()

    _config.resolve_paths(create_dirs=True)
    setup_logging(_config.logging, config_dir=_config.config_dir)

    _rate_limiter = IntervalRateLimiter.from_config(_config.igdb.rate_limit)
    _catalog_cache = CatalogCache(create_cache_backend(_config.cache), _config.cache)

    logger.info(
        "playshelf_configured",
        version=__version__,
        config_path=str(config_path) if config_path else None,
        config_dir=str(_config.config_dir),
        cache_backend=_config.cache.backend,
        database_path=str(_config.get_database_path()),
    )
    return _config


def get_config() -> Config:
    """
    Get current configuration, initializing with defaults if needed.

    Example:
        >>> import playshelf
        >>> playshelf.get_config().igdb.search_limit
        10
    """
    global _config
    if _config is None:
        _config = Config()
        setup_logging(_config.logging)
    return _config


def get_rate_limiter() -> IntervalRateLimiter:
    """
    Get the process-wide IGDB rate limiter.

    Every IGDB client must share this instance for the request ceiling
    to hold across the process.
    """
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = IntervalRateLimiter.from_config(get_config().igdb.rate_limit)
    return _rate_limiter


def get_catalog_cache() -> CatalogCache:
    """Get the process-wide catalog cache (built from config on first use)."""
    global _catalog_cache
    if _catalog_cache is None:
        cache_config = get_config().cache
        _catalog_cache = CatalogCache(create_cache_backend(cache_config), cache_config)
    return _catalog_cache


async def reset() -> None:
    """Close the shared cache and forget all process-wide state."""
    global _config, _rate_limiter, _catalog_cache
    if _catalog_cache is not None:
        await _catalog_cache.close()
    _config = None
    _rate_limiter = None
    _catalog_cache = None
