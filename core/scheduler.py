# core/scheduler.py

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol, Set

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]

class Cancellable(Protocol):
    def cancel(self) -> None:
        ...

class Scheduler(Protocol):
    def every(self, period_s: float, callback: TickCallback) -> Cancellable:
        ...

class RepeatingTask:
    """
    Fires `callback` immediately and then every `period_s` seconds.
    Each firing runs as its own task, so a slow tick never delays the next one.
    Cancelling stops future firings; ticks already running finish on their own.
    """

    def __init__(self, period_s: float, callback: TickCallback):
        self.period_s = period_s
        self.callback = callback
        self._ticks: Set[asyncio.Task] = set()
        self._loop_task: Optional[asyncio.Task] = None

    def start(self) -> "RepeatingTask":
        self._loop_task = asyncio.get_running_loop().create_task(self._run())
        return self

    async def _run(self):
        while True:
            tick = asyncio.ensure_future(self.callback())
            self._ticks.add(tick)
            tick.add_done_callback(self._tick_done)
            await asyncio.sleep(self.period_s)

    def _tick_done(self, tick: asyncio.Task):
        self._ticks.discard(tick)
        if not tick.cancelled() and tick.exception() is not None:
            logger.error("---SCHEDULER: tick failed: %r---", tick.exception())

    @property
    def cancelled(self) -> bool:
        return self._loop_task is None or self._loop_task.done()

    @property
    def pending_ticks(self) -> int:
        return len(self._ticks)

    def cancel(self) -> None:
        if self._loop_task is not None and not self._loop_task.done():
            self._loop_task.cancel()

    async def drain(self) -> None:
        """Waits for ticks that were already running at cancellation."""
        if self._ticks:
            await asyncio.gather(*list(self._ticks), return_exceptions=True)

class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def every(self, period_s: float, callback: TickCallback) -> RepeatingTask:
        return RepeatingTask(period_s, callback).start()
