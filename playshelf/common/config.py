"""Configuration models using Pydantic for validation."""

import os
from pathlib import Path
from typing import Optional, Dict, Any, ClassVar

import yaml
from pydantic import BaseModel, Field, field_validator
import structlog

logger = structlog.get_logger(__name__)


class HTTPConfig(BaseModel):
    """Configuration for HTTP client."""

    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Request timeout in seconds",
    )
    verify_ssl: bool = Field(
        default=True,
        description="Whether to verify SSL certificates",
    )
    max_connections: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of connections in the pool",
    )
    max_keepalive_connections: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum number of keep-alive connections",
    )


class FileLoggingConfig(BaseModel):
    """Configuration for file-based logging.

    File logging uses daily rotation with 7-day retention.
    Log files are stored as playshelf.log in config_dir.
    """

    enabled: bool = Field(
        default=False,
        description="Enable file logging (logs to playshelf.log in config_dir)",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    format: str = Field(
        default="json",
        description="Log format: json or text",
    )
    file: FileLoggingConfig = Field(
        default_factory=FileLoggingConfig,
        description="File logging configuration",
    )
    third_party: Dict[str, str] = Field(
        default_factory=dict,
        description="Log levels for third-party libraries (advanced)",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid format: {v}. Must be one of {valid_formats}")
        return v_lower


class RateLimitConfig(BaseModel):
    """Configuration for the provider request pacer.

    The pacer spaces the start of consecutive provider calls by a fixed
    interval. It never bursts, even after the limiter has been idle.
    """

    min_interval_seconds: float = Field(
        default=0.25,
        ge=0.0,
        le=60.0,
        description="Minimum time between the start of consecutive provider calls",
    )


class CacheConfig(BaseModel):
    """Configuration for the catalog cache gateway."""

    backend: str = Field(
        default="memory",
        description="Cache backend: memory or redis",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (used when backend is redis)",
    )
    key_prefix: str = Field(
        default="igdb:",
        description="Prefix prepended to every cache key",
    )
    max_entries: int = Field(
        default=10000,
        ge=1,
        description="Maximum entries held by the in-memory backend",
    )
    search_ttl: int = Field(
        default=7 * 24 * 60 * 60,
        ge=1,
        description="Time-to-live for search results in seconds",
    )
    item_ttl: int = Field(
        default=30 * 24 * 60 * 60,
        ge=1,
        description="Time-to-live for game details in seconds",
    )
    platform_ttl: int = Field(
        default=30 * 24 * 60 * 60,
        ge=1,
        description="Time-to-live for platform lookups in seconds",
    )
    token_ttl_cap: int = Field(
        default=7 * 24 * 60 * 60,
        ge=1,
        description="Upper bound on how long an access token is cached",
    )
    token_expiry_buffer: int = Field(
        default=300,
        ge=0,
        description="Seconds subtracted from a token's lifetime before caching it",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate cache backend name."""
        valid_backends = ["memory", "redis"]
        v_lower = v.lower()
        if v_lower not in valid_backends:
            raise ValueError(f"Invalid cache backend: {v}. Must be one of {valid_backends}")
        return v_lower


class APIClientConfig(BaseModel):
    """Configuration for a specific API client.

    Only carries authentication settings. Environment variables take
    precedence over values stored here.
    """

    auth: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Authentication configuration (client ids, secrets)",
    )


class IGDBConfig(BaseModel):
    """Configuration for the IGDB catalog provider."""

    base_url: str = Field(
        default="https://api.igdb.com/v4",
        description="IGDB API base URL",
    )
    auth_url: str = Field(
        default="https://id.twitch.tv/oauth2/token",
        description="Twitch OAuth token endpoint",
    )
    search_limit: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum number of candidates returned by a search",
    )
    cover_size: str = Field(
        default="cover_big",
        description="IGDB image size used for cover URLs",
    )
    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Request pacing for IGDB calls",
    )


class ImportConfig(BaseModel):
    """Configuration for bulk import reconciliation."""

    max_concurrent: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Names reconciled at once (1 processes names sequentially)",
    )


class DatabaseConfig(BaseModel):
    """Configuration for the SQLite catalog database."""

    database_path: str = Field(
        default="playshelf.db",
        description="Database file path (relative paths resolve against config_dir)",
    )
    enable_wal_mode: bool = Field(
        default=True,
        description="Enable write-ahead logging",
    )
    connection_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Seconds to wait for a locked database",
    )


def _get_default_config_dir() -> Path:
    """
    Get default config directory based on environment.

    Priority:
    1. PLAYSHELF_CONFIG_DIR environment variable
    2. $HOME/.playshelf otherwise

    Returns:
        Path to config directory
    """
    env_config_dir = os.environ.get("PLAYSHELF_CONFIG_DIR")
    if env_config_dir:
        return Path(env_config_dir)

    return Path.home() / ".playshelf"


class Config(BaseModel):
    """Main configuration class for playshelf.

    Environment Variables:
    - PLAYSHELF_CONFIG_DIR: Override config_dir
    - IGDB_CLIENT_ID / IGDB_CLIENT_SECRET: Override apis.igdb.auth

    Relative paths in config (database_path) are resolved against
    config_dir at runtime.
    """

    config_dir: Optional[Path] = Field(
        default=None,
        description="Configuration directory (database, logs). Resolved from PLAYSHELF_CONFIG_DIR or defaults.",
    )
    http: HTTPConfig = Field(
        default_factory=HTTPConfig,
        description="HTTP client configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig,
        description="Catalog cache configuration",
    )
    igdb: IGDBConfig = Field(
        default_factory=IGDBConfig,
        description="IGDB provider configuration",
    )
    importer: ImportConfig = Field(
        default_factory=ImportConfig,
        description="Bulk import configuration",
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Database configuration",
    )
    apis: Optional[Dict[str, APIClientConfig]] = Field(
        default=None,
        description="API client configurations",
    )

    DEFAULT_LOG_FILE: ClassVar[str] = "playshelf.log"

    def resolve_paths(self, create_dirs: bool = True) -> "Config":
        """
        Resolve config_dir from environment or defaults.

        Args:
            create_dirs: If True, create the directory if it doesn't exist

        Returns:
            Self with resolved paths (for chaining)

        Example:
            >>> config = Config.from_yaml(Path("config.yaml")).resolve_paths()
        """
        if self.config_dir is None:
            object.__setattr__(self, "config_dir", _get_default_config_dir())

        if create_dirs:
            self.config_dir.mkdir(parents=True, exist_ok=True)

        logger.debug("paths_resolved", config_dir=str(self.config_dir))

        return self

    def get_database_path(self) -> Path:
        """
        Get absolute database path, resolved against config_dir.

        Returns:
            Absolute path to database file
        """
        db_path = Path(self.database.database_path)
        if db_path.is_absolute():
            return db_path
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / db_path

    def get_log_file_path(self) -> Path:
        """Get absolute log file path, resolved against config_dir."""
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / self.DEFAULT_LOG_FILE

    def get_api_auth(self, name: str) -> Dict[str, Any]:
        """
        Get the auth mapping for a named API client.

        Args:
            name: API client name (e.g. "igdb")

        Returns:
            Auth settings, or an empty dict when none are configured
        """
        if not self.apis or name not in self.apis:
            return {}
        return dict(self.apis[name].auth or {})

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config object with validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            pydantic.ValidationError: If configuration is invalid

        Example:
            >>> from pathlib import Path
            >>> config = Config.from_yaml(Path("config.yaml"))
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "Config":
        """
        Load configuration from YAML string.

        Args:
            yaml_string: YAML configuration as string

        Returns:
            Config object with validated configuration

        Example:
            >>> yaml_str = "igdb:\\n  search_limit: 5"
            >>> config = Config.from_yaml_string(yaml_str)
        """
        data = yaml.safe_load(yaml_string)
        return cls.model_validate(data or {})
