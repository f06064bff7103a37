"""textgen Python client: streaming access to the /complete and /messages APIs."""

__version__ = "0.1.0"

from .client import TextgenClient, AsyncTextgenClient
from .models import (
    Usage, ContentBlock, Message, CompleteRequest, MessagesRequest,
    CompleteResponse, MessagesResponse, RateLimitHeaders,
)
from .events import (
    Ping, Completion, MessageStart, ContentBlockStart, ContentBlockDelta,
    ContentBlockStop, MessageDelta, MessageStop, ErrorEvent, Unrecognized,
    StreamEvent,
)
from .exceptions import (
    TextgenError, TransportError, DecodeError, ConsistencyError, APIError,
    OverloadedError, AuthenticationError, RateLimitError,
    EmptyMessageLimitExceeded, CanceledError,
)

__all__ = [
    "TextgenClient",
    "AsyncTextgenClient",
    "Usage",
    "ContentBlock",
    "Message",
    "CompleteRequest",
    "MessagesRequest",
    "CompleteResponse",
    "MessagesResponse",
    "RateLimitHeaders",
    "Ping",
    "Completion",
    "MessageStart",
    "ContentBlockStart",
    "ContentBlockDelta",
    "ContentBlockStop",
    "MessageDelta",
    "MessageStop",
    "ErrorEvent",
    "Unrecognized",
    "StreamEvent",
    "TextgenError",
    "TransportError",
    "DecodeError",
    "ConsistencyError",
    "APIError",
    "OverloadedError",
    "AuthenticationError",
    "RateLimitError",
    "EmptyMessageLimitExceeded",
    "CanceledError",
]
