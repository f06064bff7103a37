"""SSE frame reader and event decoder for httpx streaming responses."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator

from pydantic import ValidationError

from .events import EVENT_TYPES, StreamEvent, Unrecognized
from .exceptions import DecodeError, EmptyMessageLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_EMPTY_MESSAGES_LIMIT = 300
DEFAULT_MAX_FRAME_SIZE = 4 * 1024 * 1024

_EVENT_PREFIX = "event:"
_DATA_PREFIX = "data:"


@dataclass(frozen=True)
class RawFrame:
    """One blank-line-delimited block of an event stream."""
    event: str = ""
    data: str = ""


# Stands in for a line that is neither a field nor a frame boundary.
_NOISE = RawFrame()


class _FrameBuilder:
    def __init__(self, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> None:
        self.max_frame_size = max_frame_size
        self.event = ""
        self.data: list[str] = []
        self.size = 0

    def push(self, line: str) -> RawFrame | None:
        """Consume one line.

        Returns the pending frame on a blank line, ``_NOISE`` for any line
        other than ``event:`` or ``data:``, and None otherwise.
        """
        line = line.rstrip("\r\n")
        if not line:
            frame = RawFrame(event=self.event, data="".join(self.data))
            self.event = ""
            self.data = []
            self.size = 0
            return frame
        if line.startswith(_EVENT_PREFIX):
            self.event = _field_value(line, _EVENT_PREFIX)
        elif line.startswith(_DATA_PREFIX):
            value = _field_value(line, _DATA_PREFIX)
            self.size += len(value)
            if self.size > self.max_frame_size:
                raise DecodeError(
                    f"frame exceeds {self.max_frame_size} characters without a blank line",
                    event=self.event,
                )
            self.data.append(value)
        else:
            return _NOISE
        return None


def _field_value(line: str, prefix: str) -> str:
    value = line[len(prefix):]
    if value.startswith(" "):
        value = value[1:]
    return value


def iter_sse_frames(
    lines: Iterable[str], max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
) -> Iterator[RawFrame]:
    """Yield frames from the decoded lines of an event stream.

    A frame is emitted on every blank line, and an empty frame for every
    line that is not an ``event:`` or ``data:`` field, so junk reaches the
    empty-frame guard. A frame still being built when the lines run out is
    dropped; one whose data grows past ``max_frame_size`` raises DecodeError.
    """
    builder = _FrameBuilder(max_frame_size)
    for line in lines:
        frame = builder.push(line)
        if frame is not None:
            yield frame


async def aiter_sse_frames(
    lines: AsyncIterable[str], max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
) -> AsyncIterator[RawFrame]:
    """Async version of :func:`iter_sse_frames`."""
    builder = _FrameBuilder(max_frame_size)
    async for line in lines:
        frame = builder.push(line)
        if frame is not None:
            yield frame


def decode_event(frame: RawFrame) -> StreamEvent:
    """Parse a frame into a typed event.

    Unknown or empty event names give ``Unrecognized``. A known name with a
    payload that does not match its schema raises ``DecodeError``.
    """
    model = EVENT_TYPES.get(frame.event)
    if model is None:
        return Unrecognized(event=frame.event)
    try:
        return model.model_validate_json(frame.data)
    except ValidationError as exc:
        raise DecodeError(
            f"invalid {frame.event!r} payload: {exc}",
            event=frame.event,
            payload=frame.data,
        ) from exc


class EmptyFrameGuard:
    """Aborts a stream after too many unrecognized frames in a row."""

    def __init__(self, limit: int = DEFAULT_EMPTY_MESSAGES_LIMIT):
        if limit < 0:
            raise ValueError("limit must be non-negative")
        self.limit = limit
        self.count = 0

    def observe(self, event: StreamEvent) -> None:
        if not isinstance(event, Unrecognized):
            self.count = 0
            return
        self.count += 1
        logger.debug("Skipping unrecognized frame %r (%d in a row)", event.event, self.count)
        if self.count > self.limit:
            logger.warning("Aborting stream after %d unrecognized frames", self.count)
            raise EmptyMessageLimitExceeded(self.limit)
