import json
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from sitechat.dependencies import get_codec, get_relay
from sitechat.logging_config import get_logger
from sitechat.schemas.chat import (
    CallRequest,
    ChatMessageRequest,
    ChatReplyRequest,
    RepliesResponse,
    ReplyMessage,
    SuccessResponse,
)
from sitechat.services.errors import PayloadError, RelayError, SignatureError
from sitechat.services.relay import Relay
from sitechat.services.signature import SIGNATURE_HEADER, SignatureCodec

logger = get_logger("chat_router")

router = APIRouter(prefix="/api")

MSG_RECEIVED = "Дані отримано"


def _decode_json(raw: bytes) -> dict:
    try:
        data = json.loads(raw or b"null")
    except ValueError:
        raise PayloadError("Invalid JSON")
    if not isinstance(data, dict):
        raise PayloadError("Invalid data")
    return data


def parse_site_event(data: dict) -> Union[CallRequest, ChatMessageRequest]:
    """A site event is either a call request or a chat message."""
    try:
        if data.get("type") == "call":
            return CallRequest(**data)
        if data.get("message") and data.get("sessionId"):
            return ChatMessageRequest(**data)
    except ValidationError as e:
        raise PayloadError(f"Invalid data: {e.error_count()} error(s)")
    raise PayloadError("Invalid data")


def _raise_http(error: RelayError) -> None:
    raise HTTPException(status_code=error.status_code, detail=error.message)


@router.post("/chat-message", response_model=SuccessResponse)
async def chat_message(request: Request, relay: Relay = Depends(get_relay)):
    """Site -> operator: live-chat message or call-back request."""
    try:
        event = parse_site_event(_decode_json(await request.body()))
        if isinstance(event, CallRequest):
            await relay.submit_call_request(event)
        else:
            await relay.submit_chat_message(event.session_id, event.message)
    except RelayError as e:
        if e.status_code >= 500:
            logger.error(f"Chat message failed: {e.message}")
        _raise_http(e)
    except Exception as e:
        logger.error(f"Chat message failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    return SuccessResponse(success=True, message=MSG_RECEIVED)


@router.post("/chat-reply", response_model=SuccessResponse)
async def chat_reply(
    request: Request,
    relay: Relay = Depends(get_relay),
    codec: SignatureCodec = Depends(get_codec),
):
    """Automation peer -> site. Signed with x-make-signature when a secret is set."""
    raw = await request.body()
    try:
        if not codec.verify(raw, request.headers.get(SIGNATURE_HEADER)):
            raise SignatureError("Invalid signature")
        data = _decode_json(raw)
        try:
            reply = ChatReplyRequest(**data)
        except ValidationError:
            raise PayloadError("Missing sessionId/text")
        relay.accept_automation_reply(reply.session_id, reply.text)
    except SignatureError as e:
        logger.warning("Rejected automation reply: bad signature")
        _raise_http(e)
    except RelayError as e:
        _raise_http(e)
    except Exception as e:
        logger.error(f"Chat reply failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    return SuccessResponse(success=True)


@router.get("/chat-replies/{session_id}", response_model=RepliesResponse)
async def chat_replies(session_id: str, relay: Relay = Depends(get_relay)):
    """Site polling. Pending replies are handed over once and cleared."""
    messages = relay.poll_replies(session_id)
    return RepliesResponse(messages=[ReplyMessage(**m.to_dict()) for m in messages])
