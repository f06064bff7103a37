"""textgen sync and async clients."""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional

import httpx

from . import __version__
from ._session import CompletionSession, MessageSession, _Session
from ._streaming import (
    DEFAULT_EMPTY_MESSAGES_LIMIT,
    EmptyFrameGuard,
    RawFrame,
    aiter_sse_frames,
    decode_event,
    iter_sse_frames,
)
from .events import (
    Completion,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    MessageDelta,
    MessageStart,
    MessageStop,
    Ping,
    Unrecognized,
)
from .exceptions import APIError, CanceledError, TextgenError, TransportError, api_error
from .models import CompleteRequest, CompleteResponse, MessagesRequest, MessagesResponse

logger = logging.getLogger(__name__)

_USER_AGENT = f"textgen-python/{__version__}"
DEFAULT_API_VERSION = "2023-06-01"

_STATUS_ERROR_TYPES = {
    400: "invalid_request_error",
    401: "authentication_error",
    403: "permission_error",
    404: "not_found_error",
    429: "rate_limit_error",
    529: "overloaded_error",
}

ErrorCallback = Callable[[TextgenError], None]


def _error_from_response(resp: httpx.Response) -> APIError:
    try:
        detail = resp.json()["error"]
        err_type, message = detail["type"], detail["message"]
    except (ValueError, KeyError, TypeError):
        err_type = _STATUS_ERROR_TYPES.get(resp.status_code, "api_error")
        message = resp.text
    return api_error(err_type, message, status_code=resp.status_code)


def _check_response(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        resp.read()
        raise _error_from_response(resp)


async def _acheck_response(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        await resp.aread()
        raise _error_from_response(resp)


def _build_headers(api_key: str, api_version: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "anthropic-version": api_version,
        "User-Agent": _USER_AGENT,
    }


def _with_headers(result: MessagesResponse, headers: httpx.Headers) -> MessagesResponse:
    result._headers = dict(headers.items())
    return result


def _stream_body(request: CompleteRequest | MessagesRequest) -> dict[str, Any]:
    body = request.model_dump(exclude_none=True)
    body["stream"] = True
    return body


@contextmanager
def _translate_errors(on_error: Optional[ErrorCallback] = None) -> Generator[None, None, None]:
    """Map httpx failures to TransportError and report terminal errors."""
    try:
        yield
    except httpx.TransportError as exc:
        err = TransportError(str(exc) or exc.__class__.__name__)
        if on_error is not None:
            on_error(err)
        raise err from exc
    except CanceledError:
        raise
    except TextgenError as exc:
        if on_error is not None:
            on_error(exc)
        raise


def _handle_frame(frame: RawFrame, guard: EmptyFrameGuard, session: _Session) -> bool:
    event = decode_event(frame)
    guard.observe(event)
    if isinstance(event, Unrecognized):
        return False
    return session.feed(event)


class TextgenClient:
    """Synchronous textgen client."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 300.0,
        empty_messages_limit: int = DEFAULT_EMPTY_MESSAGES_LIMIT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        if empty_messages_limit < 0:
            raise ValueError("empty_messages_limit must be non-negative")
        self._base_url = base_url.rstrip("/")
        self._empty_messages_limit = empty_messages_limit
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=_build_headers(api_key, api_version),
            timeout=timeout,
            transport=transport,
        )

    def complete(self, request: CompleteRequest) -> CompleteResponse:
        with _translate_errors():
            resp = self._client.post("/complete", json=request.model_dump(exclude_none=True))
            _check_response(resp)
        return CompleteResponse.model_validate(resp.json())

    def create_message(self, request: MessagesRequest) -> MessagesResponse:
        with _translate_errors():
            resp = self._client.post("/messages", json=request.model_dump(exclude_none=True))
            _check_response(resp)
        return _with_headers(MessagesResponse.model_validate(resp.json()), resp.headers)

    def complete_stream(
        self,
        request: CompleteRequest,
        *,
        on_completion: Optional[Callable[[Completion], None]] = None,
        on_ping: Optional[Callable[[Ping], None]] = None,
        on_error: Optional[ErrorCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> CompleteResponse:
        """Stream a completion, firing callbacks as chunks arrive.

        Returns the accumulated completion once a chunk with a stop reason
        arrives. Raises a ``TextgenError`` subclass on any other outcome.
        """
        session = CompletionSession(on_completion=on_completion, on_ping=on_ping)
        self._run_stream("/complete", _stream_body(request), session, on_error, cancel)
        return session.result()

    def create_message_stream(
        self,
        request: MessagesRequest,
        *,
        on_message_start: Optional[Callable[[MessageStart], None]] = None,
        on_content_block_start: Optional[Callable[[ContentBlockStart], None]] = None,
        on_content_block_delta: Optional[Callable[[ContentBlockDelta], None]] = None,
        on_content_block_stop: Optional[Callable[[ContentBlockStop], None]] = None,
        on_message_delta: Optional[Callable[[MessageDelta], None]] = None,
        on_message_stop: Optional[Callable[[MessageStop], None]] = None,
        on_ping: Optional[Callable[[Ping], None]] = None,
        on_error: Optional[ErrorCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> MessagesResponse:
        """Stream a message, firing callbacks as events arrive."""
        session = MessageSession(
            on_message_start=on_message_start,
            on_content_block_start=on_content_block_start,
            on_content_block_delta=on_content_block_delta,
            on_content_block_stop=on_content_block_stop,
            on_message_delta=on_message_delta,
            on_message_stop=on_message_stop,
            on_ping=on_ping,
        )
        headers = self._run_stream("/messages", _stream_body(request), session, on_error, cancel)
        return _with_headers(session.result(), headers)

    def _run_stream(
        self,
        path: str,
        body: dict[str, Any],
        session: _Session,
        on_error: Optional[ErrorCallback],
        cancel: Optional[threading.Event],
    ) -> httpx.Headers:
        """Drive one stream to its terminal event; return the response headers."""
        with _translate_errors(on_error):
            if cancel is not None and cancel.is_set():
                raise CanceledError("stream canceled before start")
            guard = EmptyFrameGuard(self._empty_messages_limit)
            with self._client.stream("POST", path, json=body) as resp:
                _check_response(resp)
                logger.debug("Streaming %s", path)
                for frame in iter_sse_frames(resp.iter_lines()):
                    if cancel is not None and cancel.is_set():
                        raise CanceledError("stream canceled")
                    if _handle_frame(frame, guard, session):
                        return resp.headers
                    if cancel is not None and cancel.is_set():
                        raise CanceledError("stream canceled")
            raise TransportError("stream ended before a terminal event")

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class AsyncTextgenClient:
    """Asynchronous textgen client."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 300.0,
        empty_messages_limit: int = DEFAULT_EMPTY_MESSAGES_LIMIT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        if empty_messages_limit < 0:
            raise ValueError("empty_messages_limit must be non-negative")
        self._base_url = base_url.rstrip("/")
        self._empty_messages_limit = empty_messages_limit
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=_build_headers(api_key, api_version),
            timeout=timeout,
            transport=transport,
        )

    async def complete(self, request: CompleteRequest) -> CompleteResponse:
        with _translate_errors():
            resp = await self._client.post("/complete", json=request.model_dump(exclude_none=True))
            await _acheck_response(resp)
        return CompleteResponse.model_validate(resp.json())

    async def create_message(self, request: MessagesRequest) -> MessagesResponse:
        with _translate_errors():
            resp = await self._client.post("/messages", json=request.model_dump(exclude_none=True))
            await _acheck_response(resp)
        return _with_headers(MessagesResponse.model_validate(resp.json()), resp.headers)

    async def complete_stream(
        self,
        request: CompleteRequest,
        *,
        on_completion: Optional[Callable[[Completion], None]] = None,
        on_ping: Optional[Callable[[Ping], None]] = None,
        on_error: Optional[ErrorCallback] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> CompleteResponse:
        """Stream a completion, firing callbacks as chunks arrive."""
        session = CompletionSession(on_completion=on_completion, on_ping=on_ping)
        await self._run_stream("/complete", _stream_body(request), session, on_error, cancel)
        return session.result()

    async def create_message_stream(
        self,
        request: MessagesRequest,
        *,
        on_message_start: Optional[Callable[[MessageStart], None]] = None,
        on_content_block_start: Optional[Callable[[ContentBlockStart], None]] = None,
        on_content_block_delta: Optional[Callable[[ContentBlockDelta], None]] = None,
        on_content_block_stop: Optional[Callable[[ContentBlockStop], None]] = None,
        on_message_delta: Optional[Callable[[MessageDelta], None]] = None,
        on_message_stop: Optional[Callable[[MessageStop], None]] = None,
        on_ping: Optional[Callable[[Ping], None]] = None,
        on_error: Optional[ErrorCallback] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> MessagesResponse:
        """Stream a message, firing callbacks as events arrive."""
        session = MessageSession(
            on_message_start=on_message_start,
            on_content_block_start=on_content_block_start,
            on_content_block_delta=on_content_block_delta,
            on_content_block_stop=on_content_block_stop,
            on_message_delta=on_message_delta,
            on_message_stop=on_message_stop,
            on_ping=on_ping,
        )
        headers = await self._run_stream("/messages", _stream_body(request), session, on_error, cancel)
        return _with_headers(session.result(), headers)

    async def _run_stream(
        self,
        path: str,
        body: dict[str, Any],
        session: _Session,
        on_error: Optional[ErrorCallback],
        cancel: Optional[asyncio.Event],
    ) -> httpx.Headers:
        with _translate_errors(on_error):
            if cancel is not None and cancel.is_set():
                raise CanceledError("stream canceled before start")
            guard = EmptyFrameGuard(self._empty_messages_limit)
            async with self._client.stream("POST", path, json=body) as resp:
                await _acheck_response(resp)
                logger.debug("Streaming %s", path)
                async for frame in aiter_sse_frames(resp.aiter_lines()):
                    if cancel is not None and cancel.is_set():
                        raise CanceledError("stream canceled")
                    if _handle_frame(frame, guard, session):
                        return resp.headers
                    if cancel is not None and cancel.is_set():
                        raise CanceledError("stream canceled")
            raise TransportError("stream ended before a terminal event")

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
