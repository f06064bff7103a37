"""Tests for textgen models."""

from textgen.models import (
    CompleteRequest, CompleteResponse, ContentBlock, Message, MessagesRequest,
    MessagesResponse, RateLimitHeaders, Usage,
)


def test_complete_request_serialization():
    r = CompleteRequest(
        model="claude-instant-1.2",
        prompt="\n\nHuman: What is your name?\n\nAssistant:",
        max_tokens_to_sample=1000,
        temperature=0.5,
    )
    d = r.model_dump(exclude_none=True)
    assert d["max_tokens_to_sample"] == 1000
    assert d["temperature"] == 0.5
    assert "top_k" not in d


def test_messages_request_serialization():
    r = MessagesRequest(
        model="claude-3-opus-20240229",
        max_tokens=100,
        messages=[Message(role="user", content=[ContentBlock.text_block("Hello, world!")])],
    )
    d = r.model_dump(exclude_none=True)
    assert d["messages"][0]["content"] == [{"type": "text", "text": "Hello, world!"}]
    assert "system" not in d


def test_message_text():
    assert Message.user("hi").text() == "hi"
    m = Message(role="assistant", content=[
        ContentBlock.text_block("a"), ContentBlock(type="image"), ContentBlock.text_block("b"),
    ])
    assert m.text() == "ab"


def test_complete_response_defaults():
    r = CompleteResponse()
    assert r.completion == ""
    assert r.stop_reason is None


def test_messages_response_from_dict():
    r = MessagesResponse.model_validate({
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-opus-20240229",
        "content": [{"type": "text", "text": "Hello"}],
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 5},
    })
    assert r.text() == "Hello"
    assert r.usage == Usage(input_tokens=10, output_tokens=5)


def test_messages_response_defaults():
    r = MessagesResponse()
    assert r.content == []
    assert r.usage.output_tokens == 0
    assert r.rate_limit_headers() == RateLimitHeaders()


def test_rate_limit_headers_from_headers():
    h = RateLimitHeaders.from_headers({
        "Anthropic-RateLimit-Requests-Limit": "50",
        "anthropic-ratelimit-requests-remaining": "49",
        "anthropic-ratelimit-requests-reset": "2024-04-08T12:00:00Z",
        "anthropic-ratelimit-tokens-remaining": "9000",
        "retry-after": "3",
        "content-type": "application/json",
    })
    assert h.requests_limit == 50
    assert h.requests_remaining == 49
    assert h.requests_reset.year == 2024
    assert h.tokens_remaining == 9000
    assert h.tokens_limit is None
    assert h.retry_after == 3
