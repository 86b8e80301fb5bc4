import asyncio
from typing import Optional

from pydantic import ValidationError

from sitechat.logging_config import get_logger
from sitechat.schemas.telegram import TelegramUpdate
from sitechat.services.relay import Relay
from sitechat.services.telegram_service import TelegramService

logger = get_logger("operator_poller")

POLL_TIMEOUT_SECONDS = 25
ERROR_BACKOFF_SECONDS = 3.0


async def dispatch_update(relay: Relay, update: TelegramUpdate) -> None:
    """Route a text message from the operator chat to the relay."""
    message = update.message
    if message is None or not message.text:
        return
    if message.from_user and message.from_user.is_bot:
        return
    await relay.handle_operator_message(message.chat.id, message.text)


class OperatorPoller:
    """getUpdates long-poll loop feeding operator commands into the relay."""

    def __init__(self, telegram: TelegramService, relay: Relay, poll_timeout: int = POLL_TIMEOUT_SECONDS):
        self.telegram = telegram
        self.relay = relay
        self.poll_timeout = poll_timeout
        self.offset: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    async def poll_once(self) -> int:
        """Fetch and dispatch one batch. Returns the number of updates seen."""
        response = await self.telegram.get_updates(offset=self.offset, timeout=self.poll_timeout)
        if not response.get("ok"):
            raise RuntimeError(response.get("description") or response.get("error") or "getUpdates failed")

        updates = response.get("result") or []
        for raw in updates:
            update_id = raw.get("update_id")
            if isinstance(update_id, int):
                self.offset = update_id + 1
            try:
                update = TelegramUpdate(**raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed Telegram update: {e}")
                continue
            await dispatch_update(self.relay, update)
        return len(updates)

    async def _loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("Operator polling failed", extra={"context": {"error": str(exc)}})
                await asyncio.sleep(ERROR_BACKOFF_SECONDS)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("Operator polling started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
