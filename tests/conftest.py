"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest
import pytest_asyncio
import respx

from playshelf.cache.backends import MemoryCacheBackend
from playshelf.cache.gateway import CatalogCache
from playshelf.common.config import CacheConfig, Config, DatabaseConfig, HTTPConfig, LoggingConfig
from playshelf.core.db.repository import SQLiteCatalogRepository


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer credentials and config dirs out of tests."""
    for name in ("IGDB_CLIENT_ID", "IGDB_CLIENT_SECRET", "PLAYSHELF_CONFIG_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_config(tmp_path: Path) -> Config:
    """Provide a sample configuration for tests."""
    return Config(
        config_dir=tmp_path,
        http=HTTPConfig(timeout=10, verify_ssl=True),
        logging=LoggingConfig(level="DEBUG", format="text"),
        database=DatabaseConfig(database_path="test_playshelf.db", enable_wal_mode=False),
    )


@pytest.fixture
def http_config() -> HTTPConfig:
    """Provide a sample HTTP configuration for tests."""
    return HTTPConfig(timeout=10, verify_ssl=True)


@pytest.fixture
def cache_config() -> CacheConfig:
    """Cache configuration with a short token buffer for easy arithmetic."""
    return CacheConfig(token_expiry_buffer=300, token_ttl_cap=7 * 24 * 60 * 60)


@pytest.fixture
def memory_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend(max_entries=100)


@pytest.fixture
def catalog_cache(memory_backend: MemoryCacheBackend, cache_config: CacheConfig) -> CatalogCache:
    """Provide a catalog cache over an in-memory backend."""
    return CatalogCache(memory_backend, cache_config)


@pytest.fixture
def mock_http():
    """Provide a respx mock for httpx requests."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest_asyncio.fixture
async def test_repository(tmp_path: Path) -> SQLiteCatalogRepository:
    """Provide a connected repository backed by a temporary database."""
    repo = SQLiteCatalogRepository(tmp_path / "catalog.db", enable_wal=False)
    await repo.connect()
    yield repo
    await repo.close()
