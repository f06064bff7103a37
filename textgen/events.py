"""Typed server-sent events emitted by the streaming endpoints."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from .models import ContentBlock, MessagesResponse


class Ping(BaseModel):
    type: Literal["ping"] = "ping"


class Completion(BaseModel):
    """One chunk of a legacy /complete stream."""

    type: Literal["completion"] = "completion"
    id: str = ""
    completion: str
    stop_reason: Optional[str] = None
    model: str = ""
    stop: Optional[str] = None
    log_id: Optional[str] = None


class MessageStart(BaseModel):
    type: Literal["message_start"] = "message_start"
    message: MessagesResponse


class ContentBlockStart(BaseModel):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: ContentBlock


class TextDelta(BaseModel):
    type: str = "text_delta"
    text: str


class ContentBlockDelta(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: TextDelta


class ContentBlockStop(BaseModel):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDeltaBody(BaseModel):
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None


class DeltaUsage(BaseModel):
    output_tokens: int = 0


class MessageDelta(BaseModel):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDeltaBody
    usage: DeltaUsage = Field(default_factory=DeltaUsage)


class MessageStop(BaseModel):
    type: Literal["message_stop"] = "message_stop"


class ErrorDetail(BaseModel):
    type: str
    message: str


class ErrorEvent(BaseModel):
    """A server-reported error in the middle of a stream."""

    type: Literal["error"] = "error"
    error: ErrorDetail


class Unrecognized(BaseModel):
    """A frame whose event name is empty or unknown."""

    type: Literal["unrecognized"] = "unrecognized"
    event: str = ""


StreamEvent = Union[
    Ping,
    Completion,
    MessageStart,
    ContentBlockStart,
    ContentBlockDelta,
    ContentBlockStop,
    MessageDelta,
    MessageStop,
    ErrorEvent,
    Unrecognized,
]

EVENT_TYPES: dict[str, type[BaseModel]] = {
    "ping": Ping,
    "completion": Completion,
    "message_start": MessageStart,
    "content_block_start": ContentBlockStart,
    "content_block_delta": ContentBlockDelta,
    "content_block_stop": ContentBlockStop,
    "message_delta": MessageDelta,
    "message_stop": MessageStop,
    "error": ErrorEvent,
}
