"""Local game catalog repository.

CatalogRepository is the interface the bulk importer depends on.
SQLiteCatalogRepository is the bundled aiosqlite implementation.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncContextManager, AsyncIterator, Dict, List, Optional, Protocol, runtime_checkable

import aiosqlite
import structlog

from .connection import DatabaseConnection
from .exceptions import PlatformNotFoundError, QueryError
from ...common.config import Config
from ...common.string_utils import normalize_string
from ...parsers.models import CatalogItem, GenreRecord, LocalCatalogRecord

logger = structlog.get_logger(__name__)


@runtime_checkable
class CatalogRepository(Protocol):
    """Storage operations used by import reconciliation.

    Every write is idempotent: repeating it leaves existing rows untouched.
    """

    async def find_by_name(self, name: str) -> Optional[LocalCatalogRecord]:
        """Case-insensitive exact match on game name."""
        ...

    async def find_by_provider_id(self, provider_id: int) -> Optional[LocalCatalogRecord]:
        """Match on provider game id."""
        ...

    async def create_from_catalog_item(self, item: CatalogItem) -> LocalCatalogRecord:
        """Create a game from a catalog item (returns the existing row if already stored)."""
        ...

    async def find_or_create_genre(self, provider_genre_id: int, name: str) -> GenreRecord:
        """Get the genre with this provider id, creating it if absent."""
        ...

    async def link_genre(self, game_id: int, genre_id: int) -> None:
        """Link a genre to a game (no-op if already linked)."""
        ...

    async def attach_to_user_library(self, user_id: str, game_id: int, platform_id: str) -> bool:
        """Add a game to a user's library on a platform. Returns True if newly added."""
        ...

    async def create_default_progress(self, user_id: str, game_id: int, platform_id: str) -> bool:
        """Create a backlog progress row. Returns True if newly created."""
        ...

    async def create_platform(
        self,
        platform_id: str,
        name: str,
        display_name: Optional[str] = None,
        provider_platform_id: Optional[int] = None,
    ) -> None:
        """Register a local platform (no-op if the id already exists)."""
        ...

    async def get_platform(self, platform_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def list_platforms(self) -> List[Dict[str, Any]]:
        ...

    def transaction(self) -> AsyncContextManager[None]:
        """Run the enclosed writes as one unit: all are kept or none are."""
        ...


class SQLiteCatalogRepository:
    """
    aiosqlite implementation of CatalogRepository.

    Statements run one at a time behind an asyncio lock. A single write
    commits immediately. Writes grouped with ``transaction()`` hold the lock
    until the group commits or rolls back, so coroutines reconciling other
    names concurrently never read or roll back a half-finished import.

    Example:
        >>> async with SQLiteCatalogRepository(Path("playshelf.db")) as repo:
        ...     async with repo.transaction():
        ...         game = await repo.create_from_catalog_item(item)
        ...         await repo.attach_to_user_library("alice", game.id, "pc")
    """

    def __init__(self, db_path: Path, enable_wal: bool = True, timeout: int = 30):
        """
        Initialize catalog repository.

        Args:
            db_path: Path to SQLite database file (or ":memory:")
            enable_wal: Enable Write-Ahead Logging mode
            timeout: Seconds to wait for a locked database
        """
        self.db_path = db_path
        self._db_connection = DatabaseConnection(db_path, enable_wal, timeout)
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._transaction_task: Optional[asyncio.Task] = None

    @classmethod
    async def from_config(cls, config: Config) -> "SQLiteCatalogRepository":
        """
        Create and connect a repository from the application config.

        Args:
            config: Application configuration

        Returns:
            Connected SQLiteCatalogRepository
        """
        repo = cls(
            db_path=config.get_database_path(),
            enable_wal=config.database.enable_wal_mode,
            timeout=config.database.connection_timeout,
        )
        await repo.connect()
        logger.info("repository_initialized", db_path=str(repo.db_path))
        return repo

    async def connect(self) -> None:
        """Open the database and create the schema if needed."""
        if self._connection is None:
            self._connection = await self._db_connection.open()

    async def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            await self._db_connection.close()
            self._connection = None

    async def __aenter__(self) -> "SQLiteCatalogRepository":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise QueryError("No active connection")
        return self._connection

    def _owns_transaction(self) -> bool:
        return (
            self._transaction_task is not None
            and self._transaction_task is asyncio.current_task()
        )

    @asynccontextmanager
    async def _statement_lock(self) -> AsyncIterator[None]:
        # Statements issued inside our own transaction already hold the lock
        if self._owns_transaction():
            yield
            return
        async with self._lock:
            yield

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Group writes into one SQLite transaction.

        The lock is held for the whole block. Any exception rolls back every
        write made in the block and is re-raised unchanged. A nested call
        from the same task joins the outer transaction.

        Example:
            async with repository.transaction():
                game = await repository.create_from_catalog_item(item)
                await repository.link_genre(game.id, genre.id)
        """
        if self._owns_transaction():
            yield
            return

        connection = self._require_connection()
        async with self._lock:
            self._transaction_task = asyncio.current_task()
            try:
                await connection.execute("BEGIN")
                logger.debug("transaction_started")
                yield
                await connection.commit()
                logger.debug("transaction_committed")
            except Exception as e:
                await connection.rollback()
                logger.warning("transaction_rolled_back", error=str(e))
                raise
            finally:
                self._transaction_task = None

    async def _fetchone(self, sql: str, params: tuple) -> Optional[aiosqlite.Row]:
        connection = self._require_connection()
        async with self._statement_lock():
            cursor = await connection.execute(sql, params)
            return await cursor.fetchone()

    async def _fetchall(self, sql: str, params: tuple) -> List[aiosqlite.Row]:
        connection = self._require_connection()
        async with self._statement_lock():
            cursor = await connection.execute(sql, params)
            return list(await cursor.fetchall())

    async def _write(self, operation: str, sql: str, params: tuple) -> aiosqlite.Cursor:
        """
        Execute one write statement.

        Outside a transaction the statement commits at once and is rolled
        back on failure. Inside one, commit and rollback are left to
        ``transaction()``.
        """
        connection = self._require_connection()
        async with self._statement_lock():
            in_transaction = self._owns_transaction()
            try:
                cursor = await connection.execute(sql, params)
                if not in_transaction:
                    await connection.commit()
                return cursor
            except aiosqlite.Error as e:
                if not in_transaction:
                    await connection.rollback()
                logger.error(f"{operation}_failed", error=str(e))
                raise QueryError(
                    f"Failed to {operation.replace('_', ' ')}: {e}", query=sql, params=params
                ) from e

    # ==================== Games ====================

    async def find_by_name(self, name: str) -> Optional[LocalCatalogRecord]:
        """
        Find a game by name, ignoring case and surrounding whitespace.

        Returns:
            The oldest matching game, or None
        """
        row = await self._fetchone(
            "SELECT * FROM games WHERE py_lower(name) = ? ORDER BY id LIMIT 1",
            (normalize_string(name),),
        )
        return LocalCatalogRecord.model_validate(dict(row)) if row else None

    async def find_by_provider_id(self, provider_id: int) -> Optional[LocalCatalogRecord]:
        row = await self._fetchone("SELECT * FROM games WHERE provider_id = ?", (provider_id,))
        return LocalCatalogRecord.model_validate(dict(row)) if row else None

    async def create_from_catalog_item(self, item: CatalogItem) -> LocalCatalogRecord:
        """
        Store a catalog item as a local game.

        A game that already exists for the item's provider id is returned
        unchanged rather than duplicated.

        Raises:
            QueryError: If the insert fails
        """
        now = datetime.now(timezone.utc).isoformat()
        cursor = await self._write(
            "game_create",
            """
            INSERT OR IGNORE INTO games (
                provider_id, name, slug, cover_url, release_date, rating,
                franchise_name, summary, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.provider_id,
                item.name,
                item.slug or None,
                item.cover_url,
                item.release_date.isoformat() if item.release_date else None,
                item.rating,
                item.franchise_name,
                item.summary,
                now,
                now,
            ),
        )
        if cursor.rowcount:
            logger.info("game_created", provider_id=item.provider_id, name=item.name)

        record = await self.find_by_provider_id(item.provider_id)
        if record is None:
            raise QueryError(f"Game not found after insert: {item.provider_id}")
        return record

    # ==================== Genres ====================

    async def find_or_create_genre(self, provider_genre_id: int, name: str) -> GenreRecord:
        """
        Get a genre by provider id, creating it if absent.

        A genre already stored under the same name without a provider id
        is claimed for this provider id instead of duplicated.
        """
        row = await self._fetchone(
            "SELECT * FROM genres WHERE provider_genre_id = ?", (provider_genre_id,)
        )
        if row:
            return GenreRecord.model_validate(dict(row))

        row = await self._fetchone("SELECT * FROM genres WHERE name = ?", (name,))
        if row:
            if row["provider_genre_id"] is None:
                await self._write(
                    "genre_update",
                    "UPDATE genres SET provider_genre_id = ? WHERE id = ?",
                    (provider_genre_id, row["id"]),
                )
                return GenreRecord(id=row["id"], provider_genre_id=provider_genre_id, name=name)
            return GenreRecord.model_validate(dict(row))

        await self._write(
            "genre_create",
            "INSERT OR IGNORE INTO genres (name, provider_genre_id) VALUES (?, ?)",
            (name, provider_genre_id),
        )
        row = await self._fetchone(
            "SELECT * FROM genres WHERE provider_genre_id = ? OR name = ? ORDER BY id LIMIT 1",
            (provider_genre_id, name),
        )
        if row is None:
            raise QueryError(f"Genre not found after insert: {provider_genre_id}")
        logger.debug("genre_created", genre_id=row["id"], name=name)
        return GenreRecord.model_validate(dict(row))

    async def link_genre(self, game_id: int, genre_id: int) -> None:
        await self._write(
            "genre_link",
            "INSERT OR IGNORE INTO game_genres (game_id, genre_id) VALUES (?, ?)",
            (game_id, genre_id),
        )

    async def get_game_genres(self, game_id: int) -> List[GenreRecord]:
        rows = await self._fetchall(
            """
            SELECT g.* FROM genres g
            JOIN game_genres gg ON gg.genre_id = g.id
            WHERE gg.game_id = ?
            ORDER BY g.name
            """,
            (game_id,),
        )
        return [GenreRecord.model_validate(dict(row)) for row in rows]

    # ==================== Platforms ====================

    async def create_platform(
        self,
        platform_id: str,
        name: str,
        display_name: Optional[str] = None,
        provider_platform_id: Optional[int] = None,
    ) -> None:
        """Register a local platform (no-op if the id already exists)."""
        await self._write(
            "platform_create",
            """
            INSERT OR IGNORE INTO platforms (id, name, display_name, provider_platform_id)
            VALUES (?, ?, ?, ?)
            """,
            (platform_id, name, display_name or name, provider_platform_id),
        )

    async def get_platform(self, platform_id: str) -> Optional[Dict[str, Any]]:
        row = await self._fetchone("SELECT * FROM platforms WHERE id = ?", (platform_id,))
        return dict(row) if row else None

    async def list_platforms(self) -> List[Dict[str, Any]]:
        rows = await self._fetchall("SELECT * FROM platforms ORDER BY id", ())
        return [dict(row) for row in rows]

    # ==================== User library ====================

    async def attach_to_user_library(
        self,
        user_id: str,
        game_id: int,
        platform_id: str,
        import_source: str = "import",
    ) -> bool:
        """
        Add a game to a user's library on a platform.

        An existing association is left as it is.

        Returns:
            True if a new association was created

        Raises:
            PlatformNotFoundError: If the platform does not exist
        """
        if await self.get_platform(platform_id) is None:
            raise PlatformNotFoundError("Platform not found", platform_id=platform_id)

        cursor = await self._write(
            "library_attach",
            """
            INSERT OR IGNORE INTO user_games (user_id, game_id, platform_id, import_source, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, game_id, platform_id, import_source, datetime.now(timezone.utc).isoformat()),
        )
        created = bool(cursor.rowcount)
        if created:
            logger.info(
                "library_game_attached",
                user_id=user_id,
                game_id=game_id,
                platform_id=platform_id,
            )
        return created

    async def create_default_progress(self, user_id: str, game_id: int, platform_id: str) -> bool:
        """Create a backlog progress row unless one exists. Returns True if created."""
        cursor = await self._write(
            "progress_create",
            """
            INSERT OR IGNORE INTO user_game_progress (user_id, game_id, platform_id, status)
            VALUES (?, ?, ?, 'backlog')
            """,
            (user_id, game_id, platform_id),
        )
        return bool(cursor.rowcount)

    async def get_user_library(self, user_id: str) -> List[Dict[str, Any]]:
        """List a user's library entries joined with game names."""
        rows = await self._fetchall(
            """
            SELECT ug.*, g.name AS game_name, g.provider_id
            FROM user_games ug
            JOIN games g ON g.id = ug.game_id
            WHERE ug.user_id = ?
            ORDER BY ug.id
            """,
            (user_id,),
        )
        return [dict(row) for row in rows]

    async def get_progress(
        self, user_id: str, game_id: int, platform_id: str
    ) -> Optional[Dict[str, Any]]:
        row = await self._fetchone(
            """
            SELECT * FROM user_game_progress
            WHERE user_id = ? AND game_id = ? AND platform_id = ?
            """,
            (user_id, game_id, platform_id),
        )
        return dict(row) if row else None
