import asyncio
import logging
from typing import Any, Awaitable, Callable

from app.core.errors import DeadlineExceeded

logger = logging.getLogger(__name__)


def _retrieve_exception(task: asyncio.Task) -> None:
    # Every waiter may have given up; mark the outcome as observed.
    if not task.cancelled():
        task.exception()


class SingleFlight:
    """
    Collapses concurrent calls for the same key into one execution.

    The first caller for a key schedules ``work()`` as a task; callers that
    arrive while it is outstanding attach to the same task and receive the
    same result or the same exception. The key is cleared as soon as the
    work finishes, so the next call starts a fresh execution.

    The lock only guards the key -> task mapping. Work runs outside it, so
    unrelated keys never serialize on each other.

    Each caller waits on a shielded view of the task: a caller that is
    cancelled or times out is released alone, and the work keeps running
    for the remaining callers.
    """

    def __init__(self):
        self._calls: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()

    async def do(
        self,
        key: str,
        work: Callable[[], Awaitable[Any]],
        timeout: float | None = None,
    ) -> Any:
        """
        Run ``work`` once per overlapping burst of calls on ``key``.

        Args:
            key: Deduplication key
            work: Zero-argument coroutine function
            timeout: Seconds this caller is willing to wait (None = no limit)

        Raises:
            DeadlineExceeded: ``timeout`` elapsed before the work finished
        """
        async with self._lock:
            task = self._calls.get(key)
            if task is None:
                task = asyncio.ensure_future(self._run(key, work))
                task.add_done_callback(_retrieve_exception)
                self._calls[key] = task
                logger.debug(f"singleflight start key={key}")
            else:
                logger.debug(f"singleflight join key={key}")

        waiter = asyncio.shield(task)
        if timeout is None:
            return await waiter
        try:
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError as e:
            raise DeadlineExceeded(f"gave up waiting for {key} after {timeout}s") from e

    async def _run(self, key: str, work: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await work()
        finally:
            async with self._lock:
                if self._calls.get(key) is asyncio.current_task():
                    del self._calls[key]

    def in_flight(self, key: str) -> bool:
        return key in self._calls
