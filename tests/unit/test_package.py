"""Tests for package-level configuration and shared state."""

from pathlib import Path

import pytest
import pytest_asyncio
import structlog

import playshelf
from playshelf.common.config import Config
from playshelf.common.logging_config import bind_context, clear_context, unbind_context


@pytest_asyncio.fixture
async def fresh_state():
    await playshelf.reset()
    yield
    await playshelf.reset()


class TestConfigure:

    @pytest.mark.asyncio
    async def test_configure_with_config(self, fresh_state, sample_config):
        config = playshelf.configure(config=sample_config)

        assert config is sample_config
        assert playshelf.get_config() is sample_config
        assert playshelf.get_rate_limiter().min_interval == 0.25

    @pytest.mark.asyncio
    async def test_configure_from_path(self, fresh_state, tmp_path: Path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            f"config_dir: {tmp_path}\nigdb:\n  rate_limit:\n    min_interval_seconds: 0.5\n",
            encoding="utf-8",
        )

        config = playshelf.configure(config_path=path)

        assert config.config_dir == tmp_path
        assert playshelf.get_rate_limiter().min_interval == 0.5

    @pytest.mark.asyncio
    async def test_configure_reads_default_location(self, fresh_state, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PLAYSHELF_CONFIG_DIR", str(tmp_path))
        (tmp_path / "config.yaml").write_text("igdb:\n  search_limit: 3\n", encoding="utf-8")

        config = playshelf.configure()

        assert config.igdb.search_limit == 3
        assert config.config_dir == tmp_path

    @pytest.mark.asyncio
    async def test_configure_defaults(self, fresh_state, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PLAYSHELF_CONFIG_DIR", str(tmp_path / "empty"))

        config = playshelf.configure()

        assert config == Config(config_dir=tmp_path / "empty")
        assert (tmp_path / "empty").is_dir()


class TestSharedState:

    @pytest.mark.asyncio
    async def test_singletons_are_shared(self, fresh_state, sample_config):
        playshelf.configure(config=sample_config)

        assert playshelf.get_rate_limiter() is playshelf.get_rate_limiter()
        assert playshelf.get_catalog_cache() is playshelf.get_catalog_cache()

    @pytest.mark.asyncio
    async def test_reset_forgets_state(self, fresh_state, sample_config):
        playshelf.configure(config=sample_config)
        limiter = playshelf.get_rate_limiter()
        cache = playshelf.get_catalog_cache()

        await playshelf.reset()

        assert playshelf.get_rate_limiter() is not limiter
        assert playshelf.get_catalog_cache() is not cache

    @pytest.mark.asyncio
    async def test_lazy_defaults_without_configure(self, fresh_state):
        assert playshelf.get_config().igdb.search_limit == 10
        assert playshelf.get_catalog_cache() is not None


class TestLoggingContext:

    def test_bind_and_clear_context(self):
        clear_context()
        bind_context(import_user_id="alice")
        assert structlog.contextvars.get_contextvars() == {"import_user_id": "alice"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_unbind_context_keeps_other_keys(self):
        clear_context()
        bind_context(request_id="req-1", import_user_id="alice")

        unbind_context("import_user_id")

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}
        clear_context()
