from datetime import datetime, time, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from sitechat.config import Settings

KYIV = ZoneInfo("Europe/Kyiv")


class FakeClock:
    """Manually advanced clock in a fixed zone."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def next_midnight(self, now: datetime) -> datetime:
        return datetime.combine(now.date() + timedelta(days=1), time.min).replace(tzinfo=now.tzinfo)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 10, 0, tzinfo=KYIV))


@pytest.fixture
def clock_at():
    """Build a fake clock at a given Kyiv wall time."""

    def _make(*args) -> FakeClock:
        return FakeClock(datetime(*args, tzinfo=KYIV))

    return _make


@pytest.fixture
def telegram():
    """Operator channel double; every send succeeds."""
    fake = AsyncMock()
    fake.send_message.return_value = {"ok": True, "result": {"message_id": 1}}
    fake.get_updates.return_value = {"ok": True, "result": []}
    return fake


@pytest.fixture
def settings(tmp_path):
    return Settings(
        telegram_bot_token="test-token",
        admin_chat_id="-100500",
        make_webhook_url=None,
        make_webhook_secret=None,
        counter_state_path=str(tmp_path / "counter-state.json"),
        telegram_polling_enabled=False,
        _env_file=None,
    )
