import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run ``func`` every ``interval`` seconds until cancelled.

    The next tick is scheduled from the last run, so calling :meth:`run_now`
    resets the timer and the regular tick that would follow it is skipped.
    Errors raised by ``func`` are passed to ``on_error`` and never stop the loop.
    """

    def __init__(
        self,
        func: Callable[[], Awaitable[None]],
        interval: float,
        *,
        name: str = "periodic",
        on_error: Optional[Callable[[BaseException], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.func = func
        self.interval = interval
        self.name = name
        self.on_error = on_error
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self._last_run: Optional[float] = None
        self._wake = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, *, immediate: bool = False) -> None:
        if self.running:
            return
        self._last_run = None if immediate else self._clock()
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def cancel(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def run_now(self) -> None:
        """Run once out of band and restart the countdown."""
        await self._run()
        self._wake.set()

    async def _run(self) -> None:
        self._last_run = self._clock()
        try:
            await self.func()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("%s tick failed: %s", self.name, exc)
            if self.on_error is not None:
                self.on_error(exc)

    async def _loop(self) -> None:
        while True:
            if self._last_run is None:
                await self._run()
                continue
            delay = self._last_run + self.interval - self._clock()
            if delay > 0:
                self._wake.clear()
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
                # Either the interval elapsed or run_now moved last_run; recompute.
                continue
            await self._run()
