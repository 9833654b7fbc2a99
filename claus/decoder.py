"""Decoding of non-streamed responses.

:func:`decode_response` turns the JSON body returned by the messages
endpoint into a :class:`DecodedTurn`.  Parsing is strict about the
fields a message cannot do without (``role`` and ``content``) and lenient
about everything else: unknown top-level fields and unknown fields on
content blocks are ignored, and content blocks of an unknown ``type``
are kept as :class:`~claus.content.OpaqueBlock`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from .content import ContentBlock, Message, Role, TextBlock, ToolUseBlock, block_from_dict
from .exceptions import ApiError, InvalidField, MalformedResponse, MissingField, UnexpectedRole
from .usage import Usage

logger = logging.getLogger(__name__)


class StopReasonKind(str, Enum):
    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    TOOL_USE = "tool_use"
    STOP_SEQUENCE = "stop_sequence"
    OTHER = "other"


@dataclass(frozen=True)
class StopReason:
    """Why the model stopped.

    ``kind`` is one of the known reasons or ``OTHER``; ``raw`` is the wire
    value either way, so reasons added by the service later are kept.
    """

    kind: StopReasonKind
    raw: str

    END_TURN: ClassVar["StopReason"]
    MAX_TOKENS: ClassVar["StopReason"]
    TOOL_USE: ClassVar["StopReason"]
    STOP_SEQUENCE: ClassVar["StopReason"]

    @classmethod
    def parse(cls, raw: str) -> "StopReason":
        try:
            kind = StopReasonKind(raw)
        except ValueError:
            kind = StopReasonKind.OTHER
        return cls(kind, raw)

    def __str__(self) -> str:
        return self.raw


StopReason.END_TURN = StopReason(StopReasonKind.END_TURN, "end_turn")
StopReason.MAX_TOKENS = StopReason(StopReasonKind.MAX_TOKENS, "max_tokens")
StopReason.TOOL_USE = StopReason(StopReasonKind.TOOL_USE, "tool_use")
StopReason.STOP_SEQUENCE = StopReason(StopReasonKind.STOP_SEQUENCE, "stop_sequence")


@dataclass(frozen=True)
class DecodedTurn:
    """An assistant turn plus response metadata.

    ``complete`` is false only for partial results taken from an
    unfinished stream; such turns never have a ``stop_reason``.
    """

    content: Tuple[ContentBlock, ...]
    stop_reason: Optional[StopReason] = None
    stop_sequence: Optional[str] = None
    usage: Optional[Usage] = None
    id: Optional[str] = None
    model: Optional[str] = None
    role: Role = Role.ASSISTANT
    complete: bool = True

    @property
    def is_empty(self) -> bool:
        """True when the service sent no content blocks at all."""
        return not self.content

    @property
    def message(self) -> Message:
        return Message(role=self.role, content=self.content)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content if isinstance(block, TextBlock))

    def tool_uses(self) -> Tuple[ToolUseBlock, ...]:
        return tuple(block for block in self.content if isinstance(block, ToolUseBlock))


def load_json(payload: Union[bytes, bytearray, str]) -> Any:
    try:
        if isinstance(payload, (bytes, bytearray)):
            payload = bytes(payload).decode("utf-8")
        return json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedResponse(f"response is not valid JSON: {exc}") from exc


def raise_for_error_payload(data: Dict[str, Any]) -> None:
    """Raise :class:`~claus.exceptions.ApiError` if *data* is an error response."""
    if data.get("type") != "error":
        return
    error = data.get("error")
    if not isinstance(error, dict):
        raise MissingField("error", "error response")
    raise ApiError(str(error.get("type", "unknown")), str(error.get("message", "")))


def check_assistant_role(data: Dict[str, Any], context: str) -> Role:
    if "role" not in data:
        raise MissingField("role", context)
    if data["role"] != Role.ASSISTANT.value:
        raise UnexpectedRole(data["role"])
    return Role.ASSISTANT


def optional_str(data: Dict[str, Any], name: str) -> Optional[str]:
    value = data.get(name)
    return value if isinstance(value, str) else None


def decode_content(raw: Any, context: str = "message") -> Tuple[ContentBlock, ...]:
    if not isinstance(raw, list):
        raise InvalidField("content", "an array", context)
    return tuple(block_from_dict(item, f"content[{index}]") for index, item in enumerate(raw))


def decode_message(data: Any) -> DecodedTurn:
    """Decode an already-parsed response object."""
    if not isinstance(data, dict):
        raise MalformedResponse("response is not a JSON object")
    raise_for_error_payload(data)
    response_type = data.get("type")
    if response_type is not None and response_type != "message":
        raise MalformedResponse(f"unexpected response type {response_type!r}")

    role = check_assistant_role(data, "message")
    if "content" not in data:
        raise MissingField("content", "message")
    content = decode_content(data["content"])

    stop_reason_raw = data.get("stop_reason")
    stop_reason = StopReason.parse(stop_reason_raw) if isinstance(stop_reason_raw, str) else None

    turn = DecodedTurn(
        content=content,
        stop_reason=stop_reason,
        stop_sequence=optional_str(data, "stop_sequence"),
        usage=Usage.from_dict(data.get("usage")),
        id=optional_str(data, "id"),
        model=optional_str(data, "model"),
        role=role,
    )
    if turn.is_empty:
        logger.debug("decoded response %s has empty content", turn.id)
    logger.debug("decoded response: stop_reason=%s blocks=%d", stop_reason, len(content))
    return turn


def decode_response(payload: Union[bytes, bytearray, str]) -> DecodedTurn:
    """Decode a complete (non-streamed) messages response body.

    Raises
    ------
    MalformedResponse
        The body is not a JSON object.
    MissingField, InvalidField
        ``role`` or ``content`` (or a required block field) is absent or of
        the wrong type.
    UnexpectedRole
        ``role`` is not ``"assistant"``.
    ApiError
        The service returned an error payload instead of a message.
    """
    return decode_message(load_json(payload))


__all__ = [
    "StopReasonKind",
    "StopReason",
    "DecodedTurn",
    "decode_message",
    "decode_response",
    "load_json",
]
