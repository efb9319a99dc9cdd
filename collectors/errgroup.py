"""First-error-wins task group for concurrent scrape workers"""
import asyncio
from typing import Awaitable, Callable, Optional, Set

from logging_config import get_logger


logger = get_logger(__name__)


class ErrorGroup:
    """Runs tasks concurrently and keeps only the first error they raise.

    Reporting an error never blocks: once the slot holds an error, later
    errors are dropped. ``wait`` returns as soon as every task is done or
    the first error is recorded, whichever comes first. Tasks still running
    at that point keep running unless ``cancel_on_error`` is set.
    """

    def __init__(self, name: str = "", cancel_on_error: bool = False,
                 limiter: Optional[asyncio.Semaphore] = None,
                 tracker: Optional[Set[asyncio.Task]] = None):
        self.name = name
        self.cancel_on_error = cancel_on_error
        self._limiter = limiter
        self._tracker = tracker
        self._tasks: Set[asyncio.Task] = set()
        self._pending = 0
        self._error: Optional[Exception] = None
        self._failed = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def failed(self) -> bool:
        return self._error is not None

    def spawn(self, coro_fn: Callable[..., Awaitable], *args) -> asyncio.Task:
        """Schedule ``coro_fn(*args)`` as a task of this group"""
        self._pending += 1
        self._idle.clear()
        task = asyncio.get_running_loop().create_task(self._run(coro_fn, *args))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        if self._tracker is not None:
            self._tracker.add(task)
            task.add_done_callback(self._tracker.discard)
        if self.cancel_on_error and self._error is not None:
            # the cancel sweep in report() has already run
            task.cancel()
        return task

    def report(self, error: Exception) -> bool:
        """Record ``error`` if the slot is free; return whether it was kept"""
        if self._error is not None:
            logger.debug("Dropping error, group already failed", group=self.name, error=str(error))
            return False

        self._error = error
        self._failed.set()
        if self.cancel_on_error:
            current = asyncio.current_task()
            for task in list(self._tasks):
                if task is not current and not task.done():
                    task.cancel()
        return True

    def cancel(self) -> None:
        """Cancel every task that is still running"""
        for task in list(self._tasks):
            if not task.done():
                task.cancel()

    async def wait(self) -> Optional[Exception]:
        """Wait for all tasks or the first error and return the error, if any"""
        if self._error is None and not self._idle.is_set():
            idle = asyncio.ensure_future(self._idle.wait())
            failed = asyncio.ensure_future(self._failed.wait())
            try:
                await asyncio.wait({idle, failed}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                idle.cancel()
                failed.cancel()
        return self._error

    async def join(self) -> Optional[Exception]:
        """Wait for every task, regardless of errors"""
        await self._idle.wait()
        return self._error

    async def _run(self, coro_fn: Callable[..., Awaitable], *args) -> None:
        try:
            if self._limiter is not None:
                async with self._limiter:
                    await coro_fn(*args)
            else:
                await coro_fn(*args)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.report(e)

    def _task_done(self, task: asyncio.Task) -> None:
        # also runs for tasks cancelled before they ever started
        self._tasks.discard(task)
        self._pending -= 1
        if self._pending == 0:
            self._idle.set()
