"""Fire-and-forget side effects with captured failures.

Outbound notifications and persistence writes never fail the request that
triggered them. Their errors are logged and kept in a bounded in-memory
log so they stay observable.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Optional

from sitechat.logging_config import get_logger

logger = get_logger("side_effects")

MAX_FAILURES = 100


@dataclass
class SideEffectFailure:
    name: str
    error: str
    context: dict = field(default_factory=dict)
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SideEffects:
    def __init__(self, max_failures: int = MAX_FAILURES):
        self.failures: deque[SideEffectFailure] = deque(maxlen=max_failures)
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: str, context: Optional[dict] = None) -> asyncio.Task:
        """Run coro in the background; its exception, if any, is captured."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                self.capture(name, exc, context)

        task.add_done_callback(_done)
        return task

    def capture(self, name: str, exc: BaseException, context: Optional[dict] = None) -> None:
        failure = SideEffectFailure(name=name, error=f"{type(exc).__name__}: {exc}", context=dict(context or {}))
        self.failures.append(failure)
        logger.error(
            f"Side effect failed: {name}",
            extra={"context": {**failure.context, "error": failure.error}},
        )

    async def drain(self) -> None:
        """Wait for every in-flight side effect to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)
