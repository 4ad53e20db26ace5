"""Per-key de-duplication of in-flight async operations."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SingleFlight:
    """
    Run at most one operation per key at a time.

    The first caller for a key starts the operation and stores its task.
    Callers that arrive while it is pending await the same task and get
    the same result or exception. The task is forgotten as soon as it
    finishes, whether it succeeded or failed, so the next call after a
    failure starts a fresh attempt.

    Waiters are shielded from each other: cancelling one caller does not
    cancel the shared operation for the rest.

    Example:
        >>> flights = SingleFlight()
        >>> token = await flights.do(account_id, lambda: fetch_token(account_id))
    """

    def __init__(self) -> None:
        self._pending: Dict[Hashable, "asyncio.Task[Any]"] = {}

    async def do(self, key: Hashable, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``func`` for ``key`` unless a run for that key is already pending.

        Args:
            key: De-duplication key
            func: Zero-argument callable returning an awaitable

        Returns:
            The result of the shared run
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(func())
            self._pending[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            logger.debug("single_flight_joined", key=str(key))
        return await asyncio.shield(task)

    def in_flight(self, key: Hashable) -> bool:
        """Return True if an operation for ``key`` is pending."""
        return key in self._pending

    def pending(self, key: Hashable) -> Optional["asyncio.Task[Any]"]:
        """Return the pending task for ``key``, if any."""
        return self._pending.get(key)

    def _forget(self, key: Hashable, task: "asyncio.Task[Any]") -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()
