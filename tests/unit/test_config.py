"""Tests for configuration models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from playshelf.common.config import (
    CacheConfig,
    Config,
    LoggingConfig,
    RateLimitConfig,
)


class TestConfigDefaults:

    def test_defaults(self):
        config = Config()

        assert config.igdb.base_url == "https://api.igdb.com/v4"
        assert config.igdb.search_limit == 10
        assert config.igdb.rate_limit.min_interval_seconds == 0.25
        assert config.cache.backend == "memory"
        assert config.cache.key_prefix == "igdb:"
        assert config.cache.token_expiry_buffer == 300
        assert config.cache.token_ttl_cap == 7 * 24 * 60 * 60
        assert config.importer.max_concurrent == 1
        assert config.logging.level == "INFO"

    def test_from_yaml_string(self):
        config = Config.from_yaml_string(
            """
igdb:
  search_limit: 5
  rate_limit:
    min_interval_seconds: 0.5
cache:
  backend: REDIS
  redis_url: redis://cache:6379/1
importer:
  max_concurrent: 4
logging:
  level: debug
  format: TEXT
"""
        )

        assert config.igdb.search_limit == 5
        assert config.igdb.rate_limit.min_interval_seconds == 0.5
        assert config.cache.backend == "redis"
        assert config.cache.redis_url == "redis://cache:6379/1"
        assert config.importer.max_concurrent == 4
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "text"

    def test_empty_yaml_gives_defaults(self):
        assert Config.from_yaml_string("") == Config()

    def test_from_yaml_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("database:\n  database_path: games.db\n", encoding="utf-8")

        config = Config.from_yaml(path)

        assert config.database.database_path == "games.db"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "missing.yaml")


class TestValidation:

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            LoggingConfig(level="LOUD")

    def test_invalid_cache_backend(self):
        with pytest.raises(ValidationError, match="Invalid cache backend"):
            CacheConfig(backend="memcached")

    def test_negative_interval_rejected(self):
        with pytest.raises(ValidationError):
            RateLimitConfig(min_interval_seconds=-1)

    def test_max_concurrent_lower_bound(self):
        with pytest.raises(ValidationError):
            Config.from_yaml_string("importer:\n  max_concurrent: 0\n")


class TestPaths:

    def test_resolve_paths_uses_env(self, tmp_path: Path, monkeypatch):
        target = tmp_path / "env-dir"
        monkeypatch.setenv("PLAYSHELF_CONFIG_DIR", str(target))

        config = Config().resolve_paths()

        assert config.config_dir == target
        assert target.is_dir()

    def test_explicit_config_dir_wins(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PLAYSHELF_CONFIG_DIR", str(tmp_path / "ignored"))

        config = Config(config_dir=tmp_path / "mine").resolve_paths(create_dirs=False)

        assert config.config_dir == tmp_path / "mine"
        assert not (tmp_path / "mine").exists()

    def test_relative_database_path(self, sample_config):
        assert sample_config.get_database_path() == sample_config.config_dir / "test_playshelf.db"

    def test_absolute_database_path(self, tmp_path: Path):
        absolute = tmp_path / "elsewhere" / "db.sqlite"
        config = Config.from_yaml_string(f"database:\n  database_path: {absolute}\n")

        assert config.get_database_path() == absolute

    def test_log_file_path(self, sample_config):
        assert sample_config.get_log_file_path() == sample_config.config_dir / "playshelf.log"


class TestApiAuth:

    def test_get_api_auth(self):
        config = Config.from_yaml_string(
            "apis:\n  igdb:\n    auth:\n      client_id: abc\n      client_secret: xyz\n"
        )

        assert config.get_api_auth("igdb") == {"client_id": "abc", "client_secret": "xyz"}

    def test_get_api_auth_missing(self):
        assert Config().get_api_auth("igdb") == {}
        assert Config.from_yaml_string("apis:\n  igdb: {}\n").get_api_auth("igdb") == {}
