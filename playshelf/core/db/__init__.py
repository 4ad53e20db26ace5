"""Local catalog database: schema, connection and repository."""

from .connection import DatabaseConnection
from .exceptions import DatabaseError, DatabaseConnectionError, QueryError, PlatformNotFoundError
from .repository import CatalogRepository, SQLiteCatalogRepository

__all__ = [
    "DatabaseConnection",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "PlatformNotFoundError",
    "CatalogRepository",
    "SQLiteCatalogRepository",
]
