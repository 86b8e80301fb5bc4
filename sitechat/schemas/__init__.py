from sitechat.schemas.chat import CallRequest, ChatMessageRequest, ChatReplyRequest, RepliesResponse, SuccessResponse
from sitechat.schemas.counter import CounterResponse

__all__ = [
    "CallRequest",
    "ChatMessageRequest",
    "ChatReplyRequest",
    "RepliesResponse",
    "SuccessResponse",
    "CounterResponse",
]
