"""Service layer for import orchestration.

Example:
    >>> from playshelf.services import ImportService
    >>> service = ImportService(repository, igdb_client)
    >>> result = await service.bulk_import(["Hades"], user_id="alice")
"""

from .base import (
    BaseService,
    ServiceCallback,
    NullCallback,
    ServiceError,
    ValidationError,
    NotFoundError,
)
from .import_service import ImportService

__all__ = [
    "BaseService",
    "ServiceCallback",
    "NullCallback",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "ImportService",
]
