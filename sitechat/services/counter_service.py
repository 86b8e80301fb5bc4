"""Simulated live visitor counter.

The count grows by one at random 20-45 minute intervals and resets at local
midnight. State is written to a JSON file after every change so a restart
resumes the same day. After downtime at most one missed increment is
recovered: the boot pass folds in a single overdue tick and reschedules.
"""

import json
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from sitechat.logging_config import get_logger
from sitechat.services.clock import Clock, SystemClock, local_day_key, to_millis

logger = get_logger("counter_service")

INCREMENT_MIN = timedelta(minutes=20)
INCREMENT_MAX = timedelta(minutes=45)
MIN_TIMER_DELAY = timedelta(seconds=1)


@dataclass
class CounterState:
    day_key: Optional[str] = None
    count: int = 0
    next_at: int = 0  # epoch millis, 0 = not scheduled

    def to_dict(self) -> dict:
        return {"dayKey": self.day_key, "count": self.count, "nextAt": self.next_at}

    @classmethod
    def from_dict(cls, data: dict) -> "CounterState":
        def _int(value) -> int:
            try:
                return int(value or 0)
            except (TypeError, ValueError):
                return 0

        day = data.get("dayKey")
        return cls(
            day_key=day if isinstance(day, str) and day else None,
            count=max(_int(data.get("count")), 0),
            next_at=max(_int(data.get("nextAt")), 0),
        )


class CounterStore:
    """JSON file holding {dayKey, count, nextAt}."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[CounterState]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Counter state unreadable, starting fresh: {e}")
            return None
        if not isinstance(data, dict):
            return None
        return CounterState.from_dict(data)

    def save(self, state: CounterState) -> None:
        self.path.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")


class LiveCounter:
    def __init__(
        self,
        store: CounterStore,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        on_persist_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.on_persist_error = on_persist_error
        self.state = CounterState()

    def _random_delay_ms(self) -> int:
        low = int(INCREMENT_MIN.total_seconds() * 1000)
        high = int(INCREMENT_MAX.total_seconds() * 1000)
        return self.rng.randint(low, high)

    def _schedule_next(self, now: datetime) -> None:
        self.state.next_at = to_millis(now) + self._random_delay_ms()

    def _persist(self) -> None:
        try:
            self.store.save(self.state)
        except OSError as e:
            # in-memory state stays authoritative until the next successful write
            logger.error(
                "Counter state save failed",
                extra={"context": {"path": str(self.store.path), "error": str(e)}},
            )
            if self.on_persist_error is not None:
                self.on_persist_error(e)

    def ensure_day(self, now: datetime) -> bool:
        """Reset the count when the local day changed. Returns True on reset."""
        key = local_day_key(now)
        if self.state.day_key == key:
            return False
        self.state.day_key = key
        self.state.count = 0
        self._schedule_next(now)
        self._persist()
        logger.info("Counter day rollover", extra={"context": {"dayKey": key}})
        return True

    def maybe_increment(self, now: Optional[datetime] = None) -> bool:
        """Apply one increment if it is due. Returns True when incremented."""
        now = now or self.clock.now()
        self.ensure_day(now)

        if not self.state.next_at:
            self._schedule_next(now)
            self._persist()
            return False

        if to_millis(now) >= self.state.next_at:
            self.state.count += 1
            self._schedule_next(now)
            self._persist()
            return True

        return False

    def next_delay(self, now: Optional[datetime] = None) -> float:
        """Seconds until the next increment or local midnight, whichever is first."""
        now = now or self.clock.now()
        self.ensure_day(now)
        now_ms = to_millis(now)
        midnight_ms = to_millis(self.clock.next_midnight(now))
        next_at = self.state.next_at or now_ms + self._random_delay_ms()
        wake_ms = min(next_at, midnight_ms)
        floor_ms = int(MIN_TIMER_DELAY.total_seconds() * 1000)
        return max(floor_ms, wake_ms - now_ms) / 1000.0

    def tick(self) -> bool:
        return self.maybe_increment(self.clock.now())

    def recover(self) -> bool:
        """Load persisted state and fold in at most one overdue increment."""
        loaded = self.store.load()
        if loaded is not None:
            self.state = loaded
        now = self.clock.now()
        self.ensure_day(now)
        incremented = self.maybe_increment(now)
        logger.info(
            "Counter recovered",
            extra={"context": {"dayKey": self.state.day_key, "count": self.state.count, "caught_up": incremented}},
        )
        return incremented

    def snapshot(self) -> dict:
        return {"count": self.state.count, "dayKey": self.state.day_key}
