"""SQLite connection setup and schema bootstrap for the local catalog."""

from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

from .exceptions import DatabaseConnectionError
from .schema import ALL_TABLES, INDEXES

logger = structlog.get_logger(__name__)


def _lower(value):
    return value.lower() if isinstance(value, str) else value


class DatabaseConnection:
    """Opens one aiosqlite connection per catalog database and creates its tables."""

    def __init__(self, db_path: Path, enable_wal: bool = True, timeout: int = 30):
        self.db_path = db_path
        self.enable_wal = enable_wal
        self.timeout = timeout
        self._connection: Optional[aiosqlite.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    async def open(self) -> aiosqlite.Connection:
        """
        Open the connection (idempotent) and make sure the schema exists.

        Rows come back as ``aiosqlite.Row`` and foreign keys are enforced.
        ``py_lower(text)`` is registered for case-insensitive matching, since
        SQLite's own ``lower()`` only folds ASCII letters.
        ``:memory:`` paths skip directory creation and WAL.

        Raises:
            DatabaseConnectionError: If the database cannot be opened
        """
        if self._connection is not None:
            return self._connection

        in_memory = str(self.db_path) == ":memory:"
        try:
            if not in_memory:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            connection = await aiosqlite.connect(str(self.db_path), timeout=self.timeout)
            connection.row_factory = aiosqlite.Row
            await connection.create_function("py_lower", 1, _lower, deterministic=True)
            await connection.execute("PRAGMA foreign_keys = ON")
            if self.enable_wal and not in_memory:
                await connection.execute("PRAGMA journal_mode = WAL")
            await self._create_schema(connection)
        except (aiosqlite.Error, OSError) as e:
            logger.error("catalog_db_open_failed", db_path=str(self.db_path), error=str(e))
            raise DatabaseConnectionError(
                f"Failed to open catalog database: {e}", path=self.db_path
            ) from e

        self._connection = connection
        logger.info("catalog_db_opened", db_path=str(self.db_path), wal_mode=self.enable_wal)
        return connection

    async def _create_schema(self, connection: aiosqlite.Connection) -> None:
        for statement in ALL_TABLES + INDEXES:
            await connection.execute(statement)
        await connection.commit()

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("catalog_db_closed", db_path=str(self.db_path))
