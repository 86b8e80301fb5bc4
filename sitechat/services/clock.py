from datetime import datetime, time, timedelta, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime: ...

    def next_midnight(self, now: datetime) -> datetime: ...


class SystemClock:
    """Wall clock in a fixed zone, or in host local time when no zone is given."""

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    @classmethod
    def from_name(cls, name: Optional[str]) -> "SystemClock":
        return cls(ZoneInfo(name) if name else None)

    def now(self) -> datetime:
        if self.tz is not None:
            return datetime.now(self.tz)
        return datetime.now().astimezone()

    def next_midnight(self, now: datetime) -> datetime:
        midnight = datetime.combine(now.date() + timedelta(days=1), time.min)
        if self.tz is not None:
            return midnight.replace(tzinfo=self.tz)
        # naive local time; astimezone() resolves the host offset valid at midnight
        return midnight.astimezone()


def to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def local_day_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")
