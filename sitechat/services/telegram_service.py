from typing import Optional

import httpx

from sitechat.logging_config import get_logger
from sitechat.services.command_parser import reply_hint

logger = get_logger("telegram_service")

MSG_REPLY_DELIVERED = "✅ Відповідь надіслано на сайт"
MSG_SESSION_NOT_FOUND = "❌ Сесія не знайдена або застаріла"


class TelegramService:
    """Async client for the Telegram Bot API used as the operator channel."""

    BASE_URL = "https://api.telegram.org/bot{token}"

    def __init__(self, bot_token: str, timeout: float = 30.0):
        self.bot_token = bot_token
        self.base_url = self.BASE_URL.format(token=bot_token)
        self.timeout = timeout

    async def _make_request(self, method: str, data: Optional[dict] = None, timeout: Optional[float] = None) -> dict:
        """Make request to Telegram API. Errors come back as {"ok": False, ...}."""
        url = f"{self.base_url}/{method}"
        try:
            async with httpx.AsyncClient(timeout=timeout or self.timeout) as client:
                response = await client.post(url, json=data or {})
                return response.json()
        except Exception as e:
            logger.error(f"Telegram API error: method={method}, error={e}")
            return {"ok": False, "error": str(e)}

    async def send_message(self, chat_id: str, text: str, parse_mode: Optional[str] = None) -> dict:
        """Send message to Telegram chat."""
        data = {"chat_id": chat_id, "text": text}
        if parse_mode:
            data["parse_mode"] = parse_mode

        result = await self._make_request("sendMessage", data)
        if not result.get("ok"):
            logger.warning(
                "Telegram sendMessage failed",
                extra={"context": {"chat_id": str(chat_id), "description": result.get("description") or result.get("error")}},
            )
        return result

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 25) -> dict:
        """Long-poll for new updates."""
        data = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            data["offset"] = offset
        return await self._make_request("getUpdates", data, timeout=timeout + 10)


def format_chat_notification(session_id: str, message: str) -> str:
    """Format notification about a new live-chat message."""
    return (
        "💬 Нове повідомлення з live chat\n\n"
        f"Session: {session_id}\n"
        f"Повідомлення: {message}\n\n"
        f"Відповідь: {reply_hint(session_id)} ваша_відповідь"
    )


def format_call_request(
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    date: Optional[str],
    time: Optional[str],
) -> str:
    """Format notification about a call-back request."""
    return (
        "📞 НОВА ЗАЯВКА НА ДЗВІНОК\n\n"
        f"👤 Ім'я: {name or '-'}\n"
        f"📧 Email: {email or '-'}\n"
        f"📱 Телефон: {phone or '-'}\n"
        f"📅 Дата: {date or '-'}\n"
        f"⏰ Час: {time or '-'}\n\n"
        "🔥 Гарячий лід! Передзвони якнайшвидше!"
    )
