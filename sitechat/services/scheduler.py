import asyncio
import inspect
from typing import Any, Callable, Optional

from sitechat.logging_config import get_logger

logger = get_logger("scheduler")


class PeriodicTask:
    """Self-rescheduling background task.

    Every iteration asks ``next_delay`` how long to sleep, then runs
    ``action``. A failing action is logged and the loop goes on; only
    ``stop()`` ends it. ``reschedule()`` cuts the current sleep short so the
    delay is recomputed.
    """

    def __init__(
        self,
        name: str,
        action: Callable[[], Any],
        next_delay: Callable[[], float],
        error_backoff: float = 1.0,
    ):
        self.name = name
        self.error_backoff = error_backoff
        self._action = action
        self._next_delay = next_delay
        self._task: Optional[asyncio.Task] = None
        self._wakeup: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._wakeup = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info(f"Periodic task started: {self.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Periodic task stopped: {self.name}")

    def reschedule(self) -> None:
        if self._wakeup is not None:
            self._wakeup.set()

    async def _sleep(self, delay: float) -> bool:
        """Sleep for delay seconds. Returns False if woken by reschedule()."""
        self._wakeup.clear()
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def _loop(self) -> None:
        while True:
            try:
                delay = max(float(self._next_delay()), 0.0)
                if not await self._sleep(delay):
                    continue
                result = self._action()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error(
                    f"Periodic task iteration failed: {self.name}",
                    exc_info=True,
                    extra={"context": {"task": self.name, "error": str(exc)}},
                )
                await asyncio.sleep(self.error_backoff)
