"""Common utilities and shared components for playshelf."""

from .config import (
    Config,
    HTTPConfig,
    LoggingConfig,
    RateLimitConfig,
    CacheConfig,
    IGDBConfig,
    ImportConfig,
    DatabaseConfig,
    APIClientConfig,
)
from .string_utils import normalize_string, normalize_query, names_equal, name_contains

__all__ = [
    "Config",
    "HTTPConfig",
    "LoggingConfig",
    "RateLimitConfig",
    "CacheConfig",
    "IGDBConfig",
    "ImportConfig",
    "DatabaseConfig",
    "APIClientConfig",
    "normalize_string",
    "normalize_query",
    "names_equal",
    "name_contains",
]
