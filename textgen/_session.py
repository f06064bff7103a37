"""Per-call state that folds stream events into a final response."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .events import (
    Completion,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    ErrorEvent,
    MessageDelta,
    MessageStart,
    MessageStop,
    Ping,
    StreamEvent,
)
from .exceptions import ConsistencyError, api_error
from .models import CompleteResponse, ContentBlock, MessagesResponse

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class _Session:
    def __init__(self, callbacks: dict[str, Optional[Callback]]):
        self._callbacks = {name: cb for name, cb in callbacks.items() if cb is not None}
        self.finished = False

    def feed(self, event: StreamEvent) -> bool:
        """Fold one event and fire its callback. Returns True on success end."""
        if self.finished:
            raise ConsistencyError("stream session already finished")
        if isinstance(event, ErrorEvent):
            self.finished = True
            logger.warning("Server reported %s: %s", event.error.type, event.error.message)
            raise api_error(event.error.type, event.error.message)
        try:
            done = self._fold(event)
        except ConsistencyError:
            self.finished = True
            raise
        callback = self._callbacks.get(event.type)
        if callback is not None:
            callback(event)
        if done:
            self.finished = True
        return done

    def _fold(self, event: StreamEvent) -> bool:
        raise NotImplementedError


class CompletionSession(_Session):
    """Accumulates a legacy /complete stream."""

    def __init__(
        self,
        on_completion: Optional[Callable[[Completion], None]] = None,
        on_ping: Optional[Callable[[Ping], None]] = None,
    ):
        super().__init__({"completion": on_completion, "ping": on_ping})
        self._parts: list[str] = []
        self._last: Optional[Completion] = None

    def _fold(self, event: StreamEvent) -> bool:
        if isinstance(event, Completion):
            self._parts.append(event.completion)
            self._last = event
            return event.stop_reason is not None
        if not isinstance(event, Ping):
            logger.debug("Ignoring %s event in completion stream", event.type)
        return False

    def result(self) -> CompleteResponse:
        last = self._last or Completion(completion="")
        return CompleteResponse(
            id=last.id,
            completion="".join(self._parts),
            stop_reason=last.stop_reason,
            model=last.model,
            stop=last.stop,
            log_id=last.log_id,
        )


class MessageSession(_Session):
    """Accumulates a /messages stream into a MessagesResponse."""

    def __init__(
        self,
        on_message_start: Optional[Callable[[MessageStart], None]] = None,
        on_content_block_start: Optional[Callable[[ContentBlockStart], None]] = None,
        on_content_block_delta: Optional[Callable[[ContentBlockDelta], None]] = None,
        on_content_block_stop: Optional[Callable[[ContentBlockStop], None]] = None,
        on_message_delta: Optional[Callable[[MessageDelta], None]] = None,
        on_message_stop: Optional[Callable[[MessageStop], None]] = None,
        on_ping: Optional[Callable[[Ping], None]] = None,
    ):
        super().__init__({
            "message_start": on_message_start,
            "content_block_start": on_content_block_start,
            "content_block_delta": on_content_block_delta,
            "content_block_stop": on_content_block_stop,
            "message_delta": on_message_delta,
            "message_stop": on_message_stop,
            "ping": on_ping,
        })
        self._message: Optional[MessagesResponse] = None
        self._blocks: dict[int, ContentBlock] = {}
        self._text: dict[int, list[str]] = {}
        self._closed: set[int] = set()

    def _fold(self, event: StreamEvent) -> bool:
        if isinstance(event, Ping):
            return False
        if isinstance(event, MessageStart):
            if self._message is not None:
                raise ConsistencyError("duplicate message_start")
            self._message = event.message.model_copy(deep=True)
            return False
        if isinstance(event, Completion):
            logger.debug("Ignoring completion event in message stream")
            return False

        message = self._message
        if message is None:
            raise ConsistencyError(f"{event.type} before message_start")

        if isinstance(event, ContentBlockStart):
            if event.index in self._blocks:
                raise ConsistencyError(f"content block {event.index} started twice")
            self._blocks[event.index] = event.content_block
            self._text[event.index] = [event.content_block.text or ""]
        elif isinstance(event, ContentBlockDelta):
            self._check_open(event.index)
            self._text[event.index].append(event.delta.text)
        elif isinstance(event, ContentBlockStop):
            self._check_open(event.index)
            self._closed.add(event.index)
        elif isinstance(event, MessageDelta):
            if event.delta.stop_reason is not None:
                message.stop_reason = event.delta.stop_reason
            if event.delta.stop_sequence is not None:
                message.stop_sequence = event.delta.stop_sequence
            # output_tokens is a running total, not an increment
            message.usage.output_tokens = event.usage.output_tokens
        elif isinstance(event, MessageStop):
            return True
        return False

    def _check_open(self, index: int) -> None:
        if index not in self._blocks:
            raise ConsistencyError(f"content block {index} was never started")
        if index in self._closed:
            raise ConsistencyError(f"content block {index} is already stopped")

    def result(self) -> MessagesResponse:
        if self._message is None:
            raise ConsistencyError("no message_start received")
        content = [
            self._blocks[i].model_copy(update={"text": "".join(self._text[i])})
            for i in sorted(self._blocks)
        ]
        return self._message.model_copy(update={"content": content})
