"""Asyncio debouncer used for search input and ordering autosave.

Each trigger restarts the quiet period; the action only runs once the
period elapses without another trigger. A run that has already started is
never cancelled, so an in-flight request is not interrupted by new input.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional


@dataclass
class Debouncer:
    """Delay an async action until triggers stop for ``delay_seconds``.

    Attributes:
        delay_seconds: Quiet period before the action runs
        action: Coroutine function to run
        name: Name used in log records
    """

    delay_seconds: float
    action: Callable[[], Awaitable[None]]
    name: str = "debounce"

    last_error: Optional[BaseException] = field(default=None, init=False)
    _task: Optional[asyncio.Task[None]] = field(default=None, init=False, repr=False)
    _sleeping_task: Optional[asyncio.Task[None]] = field(
        default=None, init=False, repr=False
    )
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def pending(self) -> bool:
        """True while a scheduled run has not completed yet."""
        return self._task is not None and not self._task.done()

    def _is_sleeping(self) -> bool:
        return self._task is not None and self._task is self._sleeping_task

    def trigger(self) -> None:
        """Schedule the action, restarting the quiet period.

        Must be called from a running event loop.
        """
        if self._is_sleeping():
            self._task.cancel()  # type: ignore[union-attr]
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._sleeping_task = self._task

    def cancel(self) -> None:
        """Drop a scheduled run that has not started yet."""
        if self._is_sleeping():
            self._task.cancel()  # type: ignore[union-attr]
            self._task = None

    async def flush(self) -> None:
        """Run a scheduled action now instead of waiting for the delay."""
        if self._task is None or self._task.done():
            return
        if self._is_sleeping():
            self._task.cancel()
            self._task = None
            await self._invoke()
        else:
            await asyncio.shield(self._task)

    async def wait(self) -> None:
        """Wait until the currently scheduled run has finished."""
        while self._task is not None and not self._task.done():
            task = self._task
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if task is self._task:
                    raise

    async def _run(self) -> None:
        current = asyncio.current_task()
        try:
            await asyncio.sleep(self.delay_seconds)
        finally:
            if self._sleeping_task is current:
                self._sleeping_task = None
        await self._invoke()

    async def _invoke(self) -> None:
        self.last_error = None
        try:
            await self.action()
        except Exception as e:
            self.last_error = e
            self._logger.error(
                "Debounced action failed",
                extra={"debouncer": self.name, "error": str(e)},
                exc_info=True,
            )
