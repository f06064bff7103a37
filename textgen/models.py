"""Pydantic models for textgen requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ContentBlock(BaseModel):
    """A typed content block (text only for now)."""
    type: str = "text"
    text: Optional[str] = None

    @classmethod
    def text_block(cls, text: str) -> ContentBlock:
        return cls(type="text", text=text)


class Message(BaseModel):
    role: str
    content: Union[str, list[ContentBlock]]

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", content=text)

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role="assistant", content=text)

    def text(self) -> str:
        """Return the text content of the message."""
        if isinstance(self.content, str):
            return self.content
        return "".join(b.text or "" for b in self.content if b.type == "text")


class CompleteRequest(BaseModel):
    """Request body for the legacy /complete endpoint."""

    model: str
    prompt: str
    max_tokens_to_sample: int
    stop_sequences: Optional[list[str]] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None


class MessagesRequest(BaseModel):
    """Request body for the /messages endpoint."""

    model: str
    messages: list[Message]
    max_tokens: int
    system: Optional[str] = None
    stop_sequences: Optional[list[str]] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None


class CompleteResponse(BaseModel):
    """Result of a /complete call, streamed or not."""

    type: str = "completion"
    id: str = ""
    completion: str = ""
    stop_reason: Optional[str] = None
    model: str = ""
    stop: Optional[str] = None
    log_id: Optional[str] = None


class RateLimitHeaders(BaseModel):
    """Rate-limit state reported in the headers of a response."""

    model_config = ConfigDict(populate_by_name=True)

    requests_limit: Optional[int] = Field(default=None, alias="anthropic-ratelimit-requests-limit")
    requests_remaining: Optional[int] = Field(default=None, alias="anthropic-ratelimit-requests-remaining")
    requests_reset: Optional[datetime] = Field(default=None, alias="anthropic-ratelimit-requests-reset")
    tokens_limit: Optional[int] = Field(default=None, alias="anthropic-ratelimit-tokens-limit")
    tokens_remaining: Optional[int] = Field(default=None, alias="anthropic-ratelimit-tokens-remaining")
    tokens_reset: Optional[datetime] = Field(default=None, alias="anthropic-ratelimit-tokens-reset")
    input_tokens_limit: Optional[int] = Field(default=None, alias="anthropic-ratelimit-input-tokens-limit")
    input_tokens_remaining: Optional[int] = Field(default=None, alias="anthropic-ratelimit-input-tokens-remaining")
    input_tokens_reset: Optional[datetime] = Field(default=None, alias="anthropic-ratelimit-input-tokens-reset")
    output_tokens_limit: Optional[int] = Field(default=None, alias="anthropic-ratelimit-output-tokens-limit")
    output_tokens_remaining: Optional[int] = Field(default=None, alias="anthropic-ratelimit-output-tokens-remaining")
    output_tokens_reset: Optional[datetime] = Field(default=None, alias="anthropic-ratelimit-output-tokens-reset")
    retry_after: Optional[int] = Field(default=None, alias="retry-after")

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitHeaders:
        """Build from response headers; absent headers stay None."""
        return cls.model_validate({k.lower(): v for k, v in headers.items()})


class MessagesResponse(BaseModel):
    """Result of a /messages call, streamed or not."""

    id: str = ""
    type: str = "message"
    role: str = "assistant"
    model: str = ""
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None
    usage: Usage = Field(default_factory=Usage)

    _headers: dict[str, str] = PrivateAttr(default_factory=dict)

    def text(self) -> str:
        """Return the concatenated text of all text blocks."""
        return "".join(b.text or "" for b in self.content if b.type == "text")

    def rate_limit_headers(self) -> RateLimitHeaders:
        """Parse the rate-limit headers of the response this message came from."""
        return RateLimitHeaders.from_headers(self._headers)
