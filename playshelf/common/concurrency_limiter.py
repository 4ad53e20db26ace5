"""Concurrency limiting using asyncio semaphores."""

import asyncio
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class ConcurrencyLimiter:
    """
    Limit the number of concurrent operations using a semaphore.

    Used by the bulk importer when several names are reconciled at once.
    It bounds how many names are in progress; the shared rate limiter
    still paces the provider calls those names make.

    Example:
        >>> limiter = ConcurrencyLimiter(max_concurrent=4)
        >>> async with limiter:
        ...     outcome = await importer.reconcile_name(name, request)

    Attributes:
        max_concurrent: Maximum number of concurrent operations
        semaphore: Asyncio semaphore controlling access
    """

    def __init__(self, max_concurrent: int):
        """
        Initialize the concurrency limiter.

        Args:
            max_concurrent: Maximum number of concurrent operations

        Raises:
            ValueError: If max_concurrent is less than 1
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self._active_count = 0

        logger.debug("concurrency_limiter_initialized", max_concurrent=max_concurrent)

    async def acquire(self) -> None:
        """Wait for a free slot."""
        await self.semaphore.acquire()
        self._active_count += 1
        logger.debug(
            "concurrency_acquired",
            active=self._active_count,
            max=self.max_concurrent,
        )

    def release(self) -> None:
        """Release a slot taken with acquire()."""
        self.semaphore.release()
        self._active_count -= 1

    async def __aenter__(self) -> "ConcurrencyLimiter":
        """Context manager entry - acquire a slot."""
        await self.acquire()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Context manager exit - release the slot."""
        self.release()

    def get_active_count(self) -> int:
        """
        Get the current number of active concurrent operations.

        Returns:
            Number of currently active operations
        """
        return self._active_count
