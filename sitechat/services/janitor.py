from datetime import timedelta

from sitechat.logging_config import get_logger
from sitechat.services.scheduler import PeriodicTask
from sitechat.services.session_store import SESSION_IDLE_TTL, SessionStore

logger = get_logger("janitor")

SWEEP_INTERVAL = timedelta(hours=1)


def sweep_sessions(store: SessionStore, max_idle: timedelta = SESSION_IDLE_TTL) -> list[str]:
    removed = store.sweep_idle(max_idle)
    if removed:
        logger.info(
            "Idle sessions removed",
            extra={"context": {"removed": len(removed), "remaining": len(store)}},
        )
    return removed


def build_janitor(store: SessionStore, interval: timedelta = SWEEP_INTERVAL) -> PeriodicTask:
    return PeriodicTask(
        "session_janitor",
        action=lambda: sweep_sessions(store),
        next_delay=interval.total_seconds,
    )
