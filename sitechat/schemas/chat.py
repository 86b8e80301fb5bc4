from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CallRequest(BaseModel):
    type: Literal["call"]
    name: str
    phone: str
    email: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


def _number_to_str(value: Any) -> Any:
    # JSON numbers are accepted as text; bool is an int subclass but not a number here
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ChatMessageRequest(BaseModel):
    message: str = Field(min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    coerce_numbers = field_validator("message", "session_id", mode="before")(_number_to_str)


class ChatReplyRequest(BaseModel):
    """Automation peer callback body."""

    session_id: str = Field(alias="sessionId", min_length=1)
    text: str = Field(min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    coerce_numbers = field_validator("session_id", "text", mode="before")(_number_to_str)


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ReplyMessage(BaseModel):
    text: str
    timestamp: int


class RepliesResponse(BaseModel):
    messages: list[ReplyMessage] = []
