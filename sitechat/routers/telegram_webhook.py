import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from sitechat.config import Settings
from sitechat.dependencies import get_relay, get_settings
from sitechat.logging_config import get_logger
from sitechat.schemas.telegram import TelegramUpdate, TelegramWebhookResponse
from sitechat.services.operator_poller import dispatch_update
from sitechat.services.relay import Relay

logger = get_logger("telegram_webhook")

router = APIRouter()

SECRET_TOKEN_HEADER = "X-Telegram-Bot-Api-Secret-Token"


async def parse_telegram_update(request: Request) -> Optional[dict]:
    """
    Parse Telegram update with tolerant decoding to avoid utf-8 crashes.
    Returns dict or None.
    """
    raw = await request.body()
    for enc in ("utf-8", "latin-1"):
        try:
            data = json.loads(raw.decode(enc, errors="replace"))
        except ValueError:
            continue
        return data if isinstance(data, dict) else None

    logger.error("Failed to decode Telegram webhook payload")
    return None


@router.post("/telegram-webhook", response_model=TelegramWebhookResponse)
async def handle_telegram_webhook(
    request: Request,
    relay: Relay = Depends(get_relay),
    settings: Settings = Depends(get_settings),
):
    """Operator messages pushed by Telegram; `/reply_<sessionId> <text>` commands reach the site."""
    if settings.telegram_webhook_secret:
        if request.headers.get(SECRET_TOKEN_HEADER) != settings.telegram_webhook_secret:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    try:
        body = await parse_telegram_update(request)
        if body is None:
            return TelegramWebhookResponse(success=False, message="Invalid telegram payload")

        update = TelegramUpdate(**body)
        if not update.message or not update.message.text:
            return TelegramWebhookResponse(success=True, message="No actionable content")

        await dispatch_update(relay, update)
        return TelegramWebhookResponse(success=True)

    except Exception as e:
        logger.error(f"Telegram webhook error: {e}", exc_info=True)
        return TelegramWebhookResponse(success=False, message=str(e))
