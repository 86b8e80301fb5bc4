from typing import Optional

import httpx

from sitechat.logging_config import get_logger
from sitechat.services.session_store import ChatSession
from sitechat.services.signature import SIGNATURE_HEADER, SignatureCodec, canonical_json

logger = get_logger("automation_service")

EVENT_LIVECHAT_MESSAGE = "livechat_message"


class AutomationClient:
    """Posts chat events to the automation peer. One attempt, no retries."""

    def __init__(self, url: str, codec: SignatureCodec, reply_url: str, timeout: float = 30.0):
        self.url = url
        self.codec = codec
        self.reply_url = reply_url
        self.timeout = timeout

    def build_message_event(self, session: ChatSession, message: str) -> dict:
        return {
            "type": EVENT_LIVECHAT_MESSAGE,
            "sessionId": session.session_id,
            "message": message,
            "history": [entry.to_dict() for entry in session.history],
            "replyUrl": self.reply_url,
        }

    async def notify(self, payload: dict) -> int:
        """POST payload to the peer. Raises on transport errors and non-2xx replies."""
        body = canonical_json(payload)
        headers = {"Content-Type": "application/json"}
        signature = self.codec.sign(body)
        if signature:
            headers[SIGNATURE_HEADER] = signature

        logger.info(
            "Automation webhook: sending",
            extra={"context": {"type": payload.get("type"), "sessionId": payload.get("sessionId"), "signed": bool(signature)}},
        )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, content=body, headers=headers)
        response.raise_for_status()
        logger.info("Automation webhook: delivered", extra={"context": {"status": response.status_code}})
        return response.status_code


def build_automation_client(url: Optional[str], codec: SignatureCodec, reply_url: str) -> Optional[AutomationClient]:
    if not url:
        return None
    return AutomationClient(url, codec, reply_url)
