"""I/O-free client for the Anthropic messages API.

claus builds the exact HTTP requests the service expects and decodes its
responses, streamed or not, without ever touching the network.
"""

from .api import Api
from .builder import MessagesRequestBuilder
from .content import (
    ContentBlock,
    Message,
    OpaqueBlock,
    Role,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from .conversation import Conversation, DecodedAction
from .decoder import DecodedTurn, StopReason, StopReasonKind, decode_response
from .exceptions import (
    ApiError,
    ClausError,
    ConfigurationError,
    DecodeError,
    DuplicateBlockIndex,
    InvalidField,
    MalformedResponse,
    MissingField,
    OutOfOrderEvent,
    PrematureStop,
    StreamProtocolError,
    UnexpectedRole,
    UpstreamError,
)
from .history import ConversationHistory
from .http_request import HttpRequest
from .stream import StreamDecoder, StreamState, iter_events, parse_event
from .tools import Tool
from .usage import Usage, UsageTotals

__all__ = [
    "Api",
    "MessagesRequestBuilder",
    "ContentBlock",
    "Message",
    "OpaqueBlock",
    "Role",
    "TextBlock",
    "ThinkingBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "Conversation",
    "DecodedAction",
    "DecodedTurn",
    "StopReason",
    "StopReasonKind",
    "decode_response",
    "ApiError",
    "ClausError",
    "ConfigurationError",
    "DecodeError",
    "DuplicateBlockIndex",
    "InvalidField",
    "MalformedResponse",
    "MissingField",
    "OutOfOrderEvent",
    "PrematureStop",
    "StreamProtocolError",
    "UnexpectedRole",
    "UpstreamError",
    "ConversationHistory",
    "HttpRequest",
    "StreamDecoder",
    "StreamState",
    "iter_events",
    "parse_event",
    "Tool",
    "Usage",
    "UsageTotals",
]
