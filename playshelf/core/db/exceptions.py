"""Exceptions for database operations."""

from pathlib import Path
from typing import Optional


class DatabaseError(Exception):
    """Base exception for database errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class QueryError(DatabaseError):
    """Raised when database query execution fails."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        params: Optional[tuple] = None,
    ):
        super().__init__(message)
        self.query = query
        self.params = params


class PlatformNotFoundError(DatabaseError):
    """Raised when a game is attached to a platform that does not exist."""

    def __init__(self, message: str, platform_id: Optional[str] = None):
        super().__init__(message)
        self.platform_id = platform_id
