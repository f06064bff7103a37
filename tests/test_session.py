"""Tests for stream session accumulation."""

import pytest

from textgen._session import CompletionSession, MessageSession
from textgen.events import (
    Completion,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    DeltaUsage,
    ErrorDetail,
    ErrorEvent,
    MessageDelta,
    MessageDeltaBody,
    MessageStart,
    MessageStop,
    Ping,
    TextDelta,
)
from textgen.exceptions import APIError, ConsistencyError, OverloadedError
from textgen.models import ContentBlock, MessagesResponse, Usage


def _start() -> MessageStart:
    return MessageStart(message=MessagesResponse(
        id="msg_1", model="claude-3-opus-20240229", usage=Usage(input_tokens=844, output_tokens=2),
    ))


def _block_start(index: int, text: str = "") -> ContentBlockStart:
    return ContentBlockStart(index=index, content_block=ContentBlock.text_block(text))


def _delta(index: int, text: str) -> ContentBlockDelta:
    return ContentBlockDelta(index=index, delta=TextDelta(text=text))


def test_completion_accumulates_in_order():
    seen = []
    session = CompletionSession(on_completion=lambda e: seen.append(e.completion))
    for part in ["My", " name", " is", " Claude", "."]:
        assert session.feed(Completion(completion=part, model="claude-instant-1.2")) is False
    assert session.feed(Completion(completion="", stop_reason="stop_sequence", model="claude-instant-1.2"))

    result = session.result()
    assert result.completion == "My name is Claude."
    assert result.stop_reason == "stop_sequence"
    assert result.model == "claude-instant-1.2"
    assert "".join(seen) == "My name is Claude."


def test_ping_fires_callback_without_folding():
    pings = []
    session = CompletionSession(on_ping=pings.append)
    assert session.feed(Ping()) is False
    assert len(pings) == 1
    assert session.result().completion == ""


def test_missing_callbacks_still_fold():
    session = CompletionSession()
    session.feed(Completion(completion="a"))
    session.feed(Completion(completion="b", stop_reason="max_tokens"))
    assert session.result().completion == "ab"


def test_error_event_raises_api_error():
    session = CompletionSession()
    session.feed(Completion(completion="partial"))
    with pytest.raises(OverloadedError) as exc_info:
        session.feed(ErrorEvent(error=ErrorDetail(type="overloaded_error", message="Overloaded")))
    assert exc_info.value.is_overloaded
    assert exc_info.value.message == "Overloaded"
    assert session.finished


def test_unknown_error_type_is_plain_api_error():
    session = MessageSession()
    with pytest.raises(APIError) as exc_info:
        session.feed(ErrorEvent(error=ErrorDetail(type="invalid_request_error", message="bad")))
    assert type(exc_info.value) is APIError
    assert not exc_info.value.is_overloaded


def test_finished_session_rejects_events():
    session = CompletionSession()
    session.feed(Completion(completion="done", stop_reason="stop_sequence"))
    with pytest.raises(ConsistencyError):
        session.feed(Completion(completion="late"))


def test_message_stream_accumulates():
    events = []
    session = MessageSession(
        on_message_start=events.append,
        on_content_block_delta=events.append,
        on_message_stop=events.append,
    )
    session.feed(_start())
    session.feed(_block_start(0))
    session.feed(Ping())
    session.feed(_delta(0, "Hello"))
    session.feed(_delta(0, "!"))
    session.feed(ContentBlockStop(index=0))
    session.feed(MessageDelta(delta=MessageDeltaBody(stop_reason="end_turn"), usage=DeltaUsage(output_tokens=15)))
    assert session.feed(MessageStop()) is True

    result = session.result()
    assert result.id == "msg_1"
    assert result.text() == "Hello!"
    assert result.stop_reason == "end_turn"
    assert result.usage.input_tokens == 844
    assert result.usage.output_tokens == 15
    assert [e.type for e in events] == [
        "message_start", "content_block_delta", "content_block_delta", "message_stop",
    ]


def test_blocks_ordered_by_index():
    session = MessageSession()
    session.feed(_start())
    session.feed(_block_start(1))
    session.feed(_block_start(0, "A"))
    session.feed(_delta(1, "second"))
    session.feed(_delta(0, "first"))
    session.feed(MessageStop())
    content = session.result().content
    assert [b.text for b in content] == ["Afirst", "second"]


def test_delta_before_block_start():
    session = MessageSession()
    session.feed(_start())
    with pytest.raises(ConsistencyError):
        session.feed(_delta(0, "orphan"))
    assert session.finished


def test_delta_after_block_stop():
    session = MessageSession()
    session.feed(_start())
    session.feed(_block_start(0))
    session.feed(ContentBlockStop(index=0))
    with pytest.raises(ConsistencyError):
        session.feed(_delta(0, "late"))


def test_block_started_twice():
    session = MessageSession()
    session.feed(_start())
    session.feed(_block_start(0))
    with pytest.raises(ConsistencyError):
        session.feed(_block_start(0))


def test_events_before_message_start():
    session = MessageSession()
    with pytest.raises(ConsistencyError):
        session.feed(_block_start(0))


def test_callback_not_fired_for_inconsistent_event():
    deltas = []
    session = MessageSession(on_content_block_delta=deltas.append)
    session.feed(_start())
    with pytest.raises(ConsistencyError):
        session.feed(_delta(3, "x"))
    assert deltas == []
