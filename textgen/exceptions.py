"""Exceptions for the textgen client."""

from __future__ import annotations

from typing import Optional


class TextgenError(Exception):
    """Base exception for the textgen client."""


class TransportError(TextgenError):
    """Raised when the connection fails or a stream ends early."""


class DecodeError(TextgenError):
    """Raised when a known event carries a payload that does not parse."""

    def __init__(self, message: str, event: str = "", payload: str = ""):
        super().__init__(message)
        self.event = event
        self.payload = payload


class ConsistencyError(TextgenError):
    """Raised when stream events arrive out of order."""


class APIError(TextgenError):
    """Raised when the server reports an error."""

    def __init__(self, message: str, type: str = "api_error", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.type = type
        self.status_code = status_code

    @property
    def is_overloaded(self) -> bool:
        return self.type == "overloaded_error"

    def __str__(self) -> str:
        return f"{self.type}: {self.message}"


class OverloadedError(APIError):
    """Raised when the server is temporarily overloaded."""


class AuthenticationError(APIError):
    """Raised on 401 responses."""


class RateLimitError(APIError):
    """Raised on 429 responses."""


class EmptyMessageLimitExceeded(TextgenError):
    """Raised when a stream sends too many unrecognized frames in a row."""

    def __init__(self, limit: int):
        super().__init__(f"stream exceeded {limit} consecutive unrecognized frames")
        self.limit = limit


class CanceledError(TextgenError):
    """Raised when a stream is canceled by the caller."""


_ERROR_TYPES: dict[str, type[APIError]] = {
    "overloaded_error": OverloadedError,
    "authentication_error": AuthenticationError,
    "rate_limit_error": RateLimitError,
}


def api_error(type: str, message: str, status_code: Optional[int] = None) -> APIError:
    """Build the most specific APIError subclass for a server error type."""
    cls = _ERROR_TYPES.get(type, APIError)
    return cls(message, type=type, status_code=status_code)
