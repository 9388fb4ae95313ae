# clarion/services/async_utils.py
import asyncio
from typing import Any, Callable, Coroutine, Optional
from loguru import logger


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.trace(f"Background task {task.get_name()} was cancelled.")
        return
    exc = task.exception()
    if exc is not None:
        logger.opt(exception=exc).error(f"Background task {task.get_name()} failed: {exc}")

def run_in_background(coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
    """Schedules a coroutine on the running loop; failures are logged, not lost."""
    task = asyncio.get_running_loop().create_task(coro, name=name)
    logger.debug(f"Started background task {task.get_name()}")
    task.add_done_callback(_log_task_failure)
    return task


class Debouncer:
    """
    Calls `callback` once calls have stopped for `interval_ms`.
    Only the arguments of the last call are used.
    Must be triggered from inside a running event loop.
    """

    def __init__(self, interval_ms: int, callback: Callable[..., None]):
        self.interval_ms = interval_ms
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._args: tuple = ()
        self._kwargs: dict = {}

    def __call__(self, *args, **kwargs) -> None:
        self._args = args
        self._kwargs = kwargs
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.interval_ms / 1000, self._fire)

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _fire(self) -> None:
        self._handle = None
        self._callback(*self._args, **self._kwargs)

    def flush(self) -> bool:
        """Runs a pending call right now. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
