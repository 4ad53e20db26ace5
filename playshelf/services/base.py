"""Base service infrastructure with callbacks and error handling.

This module provides the foundation for service classes:
- BaseService: repository access, bound logging and callback reporting
- ServiceCallback: protocol for progress/failure monitoring hooks
- Service-specific exceptions: ValidationError, NotFoundError
"""

from abc import ABC
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import structlog

from ..core.db.repository import CatalogRepository

logger = structlog.get_logger(__name__)


# ==================== Exceptions ====================


class ServiceError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, details={"field": field, **kwargs})
        self.field = field


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
    ):
        super().__init__(
            message,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ==================== Callback Protocol ====================


@runtime_checkable
class ServiceCallback(Protocol):
    """
    Protocol for service operation callbacks.

    Implement this to follow a bulk import as it runs.

    Example:
        >>> class PrintProgress:
        ...     async def on_progress(self, current: int, total: int, message: str) -> None:
        ...         print(f"{current}/{total} {message}")
        ...
        ...     async def on_failure(self, error: Exception, context: dict) -> None:
        ...         print(f"failed: {context['search_term']}: {error}")
        ...
        ...     async def on_complete(self, result: Any) -> None:
        ...         print("done")
    """

    async def on_progress(self, current: int, total: int, message: str) -> None:
        """
        Called after each item is processed.

        Args:
            current: Items processed so far (1-indexed)
            total: Total number of items to process
            message: Human-readable progress message
        """
        ...

    async def on_failure(self, error: Exception, context: Dict[str, Any]) -> None:
        """
        Called when one item fails (the operation continues with the next item).

        Args:
            error: The exception that occurred
            context: Additional context about the failed item
        """
        ...

    async def on_complete(self, result: Any) -> None:
        """Called once when the whole operation has finished."""
        ...


class NullCallback:
    """No-op callback implementation for when no callback is provided."""

    async def on_progress(self, current: int, total: int, message: str) -> None:
        pass

    async def on_failure(self, error: Exception, context: Dict[str, Any]) -> None:
        pass

    async def on_complete(self, result: Any) -> None:
        pass


# ==================== Base Service ====================


class BaseService(ABC):
    """
    Abstract base class for service classes.

    Holds the catalog repository, a logger named after the concrete class
    and the callback used for progress reporting. Callback errors are
    logged and never interrupt the operation being reported on.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        callback: Optional[ServiceCallback] = None,
    ):
        """
        Initialize the service.

        Args:
            repository: Local catalog repository
            callback: Optional callback for progress/failure hooks
        """
        self._repository = repository
        self._callback = callback or NullCallback()
        self._logger = structlog.get_logger(self.__class__.__name__)

    @property
    def repository(self) -> CatalogRepository:
        """Access the catalog repository."""
        return self._repository

    @property
    def callback(self) -> ServiceCallback:
        """Access the service callback."""
        return self._callback

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Access the bound logger."""
        return self._logger

    async def _report_progress(self, current: int, total: int, message: str) -> None:
        try:
            await self._callback.on_progress(current, total, message)
        except Exception as e:
            self._logger.warning("callback_progress_failed", error=str(e))

    async def _report_failure(self, error: Exception, context: Dict[str, Any]) -> None:
        try:
            await self._callback.on_failure(error, context)
        except Exception as e:
            self._logger.warning("callback_failure_failed", error=str(e))

    async def _report_complete(self, result: Any) -> None:
        try:
            await self._callback.on_complete(result)
        except Exception as e:
            self._logger.warning("callback_complete_failed", error=str(e))
