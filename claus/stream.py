"""Decoding of streamed responses.

A streamed response arrives as a sequence of JSON events:
``message_start``, then for every content block ``content_block_start``,
any number of ``content_block_delta`` and ``content_block_stop``, then
``message_delta`` (carrying the stop reason) and ``message_stop``.
``ping`` may appear anywhere and ``error`` ends the stream.

:class:`StreamDecoder` is a state machine over those events.  The caller
pulls events from its transport and hands them to
:meth:`StreamDecoder.apply` one at a time; nothing here blocks or
schedules work, so the same decoder serves threaded and ``asyncio``
callers alike.  After ``message_stop`` :meth:`StreamDecoder.result`
returns the same :class:`~claus.decoder.DecodedTurn` that
:func:`~claus.decoder.decode_response` would return for the equivalent
complete body.

States::

    AWAITING_MESSAGE_START -> BETWEEN_BLOCKS <-> ACCUMULATING_BLOCK
    BETWEEN_BLOCKS -> COMPLETED
    any state -> ERRORED

Framing (SSE lines, websockets, ...) is the transport's business; the
decoder consumes already separated event objects.  For raw byte streams
of concatenated objects see :func:`iter_events`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from .content import ContentBlock, OpaqueBlock, TextBlock, ThinkingBlock, ToolUseBlock
from .decoder import (
    DecodedTurn,
    StopReason,
    check_assistant_role,
    decode_content,
    load_json,
    optional_str,
)
from .exceptions import (
    ClausError,
    DuplicateBlockIndex,
    InvalidField,
    MalformedResponse,
    MissingField,
    OutOfOrderEvent,
    PrematureStop,
    UpstreamError,
)
from .json_scan import JsonObjectSplitter
from .usage import Usage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageStart:
    message: Dict[str, Any]

    type = "message_start"


@dataclass(frozen=True)
class ContentBlockStart:
    index: int
    content_block: Dict[str, Any]

    type = "content_block_start"


@dataclass(frozen=True)
class ContentBlockDelta:
    index: int
    delta: Dict[str, Any]

    type = "content_block_delta"


@dataclass(frozen=True)
class ContentBlockStop:
    index: int

    type = "content_block_stop"


@dataclass(frozen=True)
class MessageDelta:
    delta: Dict[str, Any] = field(default_factory=dict)
    usage: Optional[Usage] = None

    type = "message_delta"


@dataclass(frozen=True)
class MessageStop:
    type = "message_stop"


@dataclass(frozen=True)
class Ping:
    type = "ping"


@dataclass(frozen=True)
class ErrorEvent:
    error_type: str
    message: str = ""

    type = "error"


@dataclass(frozen=True)
class UnknownEvent:
    """An event type this package does not know.  Decoders skip it."""

    raw: Dict[str, Any]

    @property
    def type(self) -> str:
        return str(self.raw.get("type"))


StreamEvent = Union[
    MessageStart,
    ContentBlockStart,
    ContentBlockDelta,
    ContentBlockStop,
    MessageDelta,
    MessageStop,
    Ping,
    ErrorEvent,
    UnknownEvent,
]


def _index(data: Dict[str, Any], event_type: str) -> int:
    if "index" not in data:
        raise MissingField("index", event_type)
    value = data["index"]
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidField("index", "a non-negative integer", event_type)
    return value


def _object(data: Dict[str, Any], name: str, event_type: str) -> Dict[str, Any]:
    if name not in data:
        raise MissingField(name, event_type)
    value = data[name]
    if not isinstance(value, dict):
        raise InvalidField(name, "an object", event_type)
    return value


def parse_event(data: Union[Dict[str, Any], bytes, str]) -> StreamEvent:
    """Turn one wire event object (or its JSON text) into a typed event."""
    if not isinstance(data, dict):
        data = load_json(data)
        if not isinstance(data, dict):
            raise MalformedResponse("stream event is not a JSON object")
    if "type" not in data:
        raise MissingField("type", "stream event")
    event_type = data["type"]

    if event_type == "message_start":
        return MessageStart(message=_object(data, "message", event_type))
    if event_type == "content_block_start":
        return ContentBlockStart(
            index=_index(data, event_type),
            content_block=_object(data, "content_block", event_type),
        )
    if event_type == "content_block_delta":
        return ContentBlockDelta(index=_index(data, event_type), delta=_object(data, "delta", event_type))
    if event_type == "content_block_stop":
        return ContentBlockStop(index=_index(data, event_type))
    if event_type == "message_delta":
        delta = data.get("delta")
        return MessageDelta(
            delta=delta if isinstance(delta, dict) else {},
            usage=Usage.from_dict(data.get("usage")),
        )
    if event_type == "message_stop":
        return MessageStop()
    if event_type == "ping":
        return Ping()
    if event_type == "error":
        error = data.get("error")
        if not isinstance(error, dict):
            error = {}
        return ErrorEvent(
            error_type=str(error.get("type", "unknown")),
            message=str(error.get("message", "")),
        )
    return UnknownEvent(raw=dict(data))


def iter_events(chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
    """Parse raw byte chunks of back-to-back JSON event objects.

    Raises :class:`~claus.exceptions.MalformedResponse` if the chunks end
    in the middle of an object.
    """
    splitter = JsonObjectSplitter()
    for chunk in chunks:
        for raw in splitter.feed(chunk):
            yield parse_event(raw)
    if splitter.has_pending:
        raise MalformedResponse("stream ended inside a JSON object")


class StreamState(str, Enum):
    AWAITING_MESSAGE_START = "awaiting_message_start"
    ACCUMULATING_BLOCK = "accumulating_block"
    BETWEEN_BLOCKS = "between_blocks"
    COMPLETED = "completed"
    ERRORED = "errored"


# Which delta types belong to which block kind.
_DELTA_KINDS = {
    "text_delta": "text",
    "input_json_delta": "tool_use",
    "thinking_delta": "thinking",
    "signature_delta": "thinking",
}


class _OpenBlock:
    """The content block currently receiving deltas."""

    __slots__ = ("index", "kind", "start", "parts", "signature")

    def __init__(self, index: int, start: Dict[str, Any]) -> None:
        self.index = index
        self.start = start
        self.signature = ""
        block_type = start.get("type")
        if block_type == "text":
            self.kind = "text"
            self.parts: List[str] = [str(start.get("text") or "")]
        elif block_type == "tool_use":
            for name in ("id", "name"):
                if not isinstance(start.get(name), str):
                    raise MissingField(name, f"content_block_start[{index}]")
            self.kind = "tool_use"
            self.parts = []
        elif block_type == "thinking":
            self.kind = "thinking"
            self.parts = [str(start.get("thinking") or "")]
            self.signature = str(start.get("signature") or "")
        else:
            self.kind = "opaque"
            self.parts = []

    def add(self, delta: Dict[str, Any]) -> None:
        delta_type = delta.get("type")
        if delta_type == "text_delta":
            self.parts.append(str(delta.get("text", "")))
        elif delta_type == "input_json_delta":
            self.parts.append(str(delta.get("partial_json", "")))
        elif delta_type == "thinking_delta":
            self.parts.append(str(delta.get("thinking", "")))
        elif delta_type == "signature_delta":
            self.signature = str(delta.get("signature", ""))

    def finish(self, strict: bool = True) -> ContentBlock:
        """Build the finished block.

        With ``strict`` false, unparseable partial tool input is reported
        as ``None`` instead of raising.
        """
        if self.kind == "text":
            return TextBlock("".join(self.parts))
        if self.kind == "thinking":
            return ThinkingBlock("".join(self.parts), self.signature)
        if self.kind == "tool_use":
            raw = "".join(self.parts)
            if raw:
                try:
                    tool_input = json.loads(raw)
                except json.JSONDecodeError as exc:
                    if strict:
                        raise MalformedResponse(
                            f"tool input for content block {self.index} is not valid JSON: {exc}"
                        ) from exc
                    tool_input = None
            else:
                tool_input = self.start.get("input", {})
            return ToolUseBlock(id=self.start["id"], name=self.start["name"], input=tool_input)
        return OpaqueBlock(raw=dict(self.start))


class StreamDecoder:
    """Rebuilds one streamed response from its events.

    A decoder is single-use and single-writer: feed it the events of one
    response, in the order received, from one caller at a time.

    Protocol violations and ``error`` events raise from :meth:`apply` and
    move the decoder to ``ERRORED``; later events are ignored.  Whatever
    was decoded before the failure stays available from :meth:`partial`.
    """

    def __init__(self) -> None:
        self.state = StreamState.AWAITING_MESSAGE_START
        self.error: Optional[ClausError] = None
        self._id: Optional[str] = None
        self._model: Optional[str] = None
        self._usage: Optional[Usage] = None
        self._blocks: Dict[int, ContentBlock] = {}
        self._open: Optional[_OpenBlock] = None
        self._stop_reason: Optional[StopReason] = None
        self._stop_sequence: Optional[str] = None
        self._delta_seen = False

    @property
    def is_complete(self) -> bool:
        return self.state is StreamState.COMPLETED

    @property
    def open_index(self) -> Optional[int]:
        return self._open.index if self._open is not None else None

    def apply(self, event: Union[StreamEvent, Dict[str, Any], bytes, str]) -> None:
        """Advance the state machine by one event.

        Raw event objects (dicts or JSON text) are parsed first.
        """
        if self.state is StreamState.ERRORED:
            logger.debug("ignoring %s event after stream error", getattr(event, "type", "raw"))
            return
        try:
            if not isinstance(
                event,
                (MessageStart, ContentBlockStart, ContentBlockDelta, ContentBlockStop,
                 MessageDelta, MessageStop, Ping, ErrorEvent, UnknownEvent),
            ):
                event = parse_event(event)
            self._dispatch(event)
        except ClausError as exc:
            # A completed result survives stray trailing events; only an upstream error replaces it.
            if self.state is not StreamState.COMPLETED or isinstance(exc, UpstreamError):
                self._fail(exc)
            raise

    def feed(self, events: Iterable[Union[StreamEvent, Dict[str, Any], bytes, str]]) -> Optional[DecodedTurn]:
        """Apply every event; return the result if the stream completed."""
        for event in events:
            self.apply(event)
        return self.result() if self.is_complete else None

    def _fail(self, exc: ClausError) -> None:
        logger.debug("stream decoder failed in state %s: %s", self.state.value, exc)
        self.state = StreamState.ERRORED
        self.error = exc

    def _dispatch(self, event: StreamEvent) -> None:
        if isinstance(event, Ping):
            return
        if isinstance(event, UnknownEvent):
            logger.debug("skipping unknown stream event %r", event.type)
            return
        if isinstance(event, ErrorEvent):
            raise UpstreamError(event.error_type, event.message)
        if self.state is StreamState.COMPLETED:
            raise OutOfOrderEvent(event.type, self.state.value, "stream already completed")

        if isinstance(event, MessageStart):
            self._on_message_start(event)
        elif isinstance(event, ContentBlockStart):
            self._on_block_start(event)
        elif isinstance(event, ContentBlockDelta):
            self._on_block_delta(event)
        elif isinstance(event, ContentBlockStop):
            self._on_block_stop(event)
        elif isinstance(event, MessageDelta):
            self._on_message_delta(event)
        elif isinstance(event, MessageStop):
            self._on_message_stop(event)

    def _require_started(self, event: StreamEvent) -> None:
        if self.state is StreamState.AWAITING_MESSAGE_START:
            raise OutOfOrderEvent(event.type, self.state.value, "no message_start yet")

    def _on_message_start(self, event: MessageStart) -> None:
        if self.state is not StreamState.AWAITING_MESSAGE_START:
            raise OutOfOrderEvent(event.type, self.state.value, "message already started")
        message = event.message
        check_assistant_role(message, "message_start")
        self._id = optional_str(message, "id")
        self._model = optional_str(message, "model")
        self._usage = Usage.from_dict(message.get("usage"))
        initial = message.get("content", [])
        for index, block in enumerate(decode_content(initial, "message_start")):
            self._blocks[index] = block
        self.state = StreamState.BETWEEN_BLOCKS

    def _on_block_start(self, event: ContentBlockStart) -> None:
        self._require_started(event)
        if event.index in self._blocks or (self._open is not None and self._open.index == event.index):
            raise DuplicateBlockIndex(event.index)
        if self._open is not None:
            raise OutOfOrderEvent(event.type, self.state.value, f"block {self._open.index} is still open")
        if self._delta_seen:
            raise OutOfOrderEvent(event.type, self.state.value, "content block after message_delta")
        expected = len(self._blocks)
        if event.index != expected:
            raise OutOfOrderEvent(
                event.type, self.state.value, f"block {event.index} started, expected block {expected}",
            )
        self._open = _OpenBlock(event.index, event.content_block)
        self.state = StreamState.ACCUMULATING_BLOCK

    def _current(self, event: Union[ContentBlockDelta, ContentBlockStop]) -> _OpenBlock:
        self._require_started(event)
        if self._open is None:
            raise OutOfOrderEvent(event.type, self.state.value, f"block {event.index} is not open")
        if self._open.index != event.index:
            raise OutOfOrderEvent(
                event.type, self.state.value,
                f"block {event.index} is not open (open block is {self._open.index})",
            )
        return self._open

    def _on_block_delta(self, event: ContentBlockDelta) -> None:
        block = self._current(event)
        delta_type = event.delta.get("type")
        if delta_type is not None and not isinstance(delta_type, str):
            raise InvalidField("type", "a string", f"{event.type}[{event.index}].delta")
        expected_kind = _DELTA_KINDS.get(delta_type)
        if block.kind == "opaque" or expected_kind is None:
            logger.debug("ignoring %r delta for %s block %d", delta_type, block.kind, block.index)
            return
        if expected_kind != block.kind:
            raise OutOfOrderEvent(
                event.type, self.state.value,
                f"{delta_type} does not apply to {block.kind} block {block.index}",
            )
        block.add(event.delta)

    def _on_block_stop(self, event: ContentBlockStop) -> None:
        block = self._current(event)
        self._blocks[block.index] = block.finish()
        self._open = None
        self.state = StreamState.BETWEEN_BLOCKS

    def _on_message_delta(self, event: MessageDelta) -> None:
        self._require_started(event)
        if self._open is not None:
            raise OutOfOrderEvent(event.type, self.state.value, f"block {self._open.index} is still open")
        self._delta_seen = True
        stop_reason = event.delta.get("stop_reason")
        if isinstance(stop_reason, str):
            self._stop_reason = StopReason.parse(stop_reason)
        stop_sequence = event.delta.get("stop_sequence")
        if isinstance(stop_sequence, str):
            self._stop_sequence = stop_sequence
        if event.usage is not None:
            self._usage = event.usage if self._usage is None else self._usage.merge(event.usage)

    def _on_message_stop(self, event: MessageStop) -> None:
        self._require_started(event)
        if self._open is not None:
            raise PrematureStop(f"message_stop while block {self._open.index} is still open")
        if self._stop_reason is None:
            raise PrematureStop("message_stop before a message_delta with a stop_reason")
        self.state = StreamState.COMPLETED
        logger.debug("stream completed: stop_reason=%s blocks=%d", self._stop_reason, len(self._blocks))

    def _content(self, include_open: bool) -> tuple:
        blocks = dict(self._blocks)
        if include_open and self._open is not None:
            blocks[self._open.index] = self._open.finish(strict=False)
        return tuple(blocks[index] for index in sorted(blocks))

    def partial(self, include_open: bool = False) -> DecodedTurn:
        """Snapshot of what has been decoded so far.

        Only finished blocks are included unless *include_open* is set, in
        which case the block still receiving deltas is rendered as well.
        The snapshot of an unfinished stream has ``complete=False`` and no
        stop reason.
        """
        if self.is_complete:
            return self.result()
        return DecodedTurn(
            content=self._content(include_open),
            stop_reason=None,
            stop_sequence=None,
            usage=self._usage,
            id=self._id,
            model=self._model,
            complete=False,
        )

    def result(self) -> DecodedTurn:
        """The decoded turn of a completed stream.

        Raises the stored error if the stream failed, and
        :class:`~claus.exceptions.PrematureStop` if it has not finished.
        """
        if self.state is StreamState.ERRORED and self.error is not None:
            raise self.error
        if not self.is_complete:
            raise PrematureStop(f"stream is not complete (state {self.state.value})")
        return DecodedTurn(
            content=self._content(False),
            stop_reason=self._stop_reason,
            stop_sequence=self._stop_sequence,
            usage=self._usage,
            id=self._id,
            model=self._model,
        )


__all__ = [
    "MessageStart",
    "ContentBlockStart",
    "ContentBlockDelta",
    "ContentBlockStop",
    "MessageDelta",
    "MessageStop",
    "Ping",
    "ErrorEvent",
    "UnknownEvent",
    "StreamEvent",
    "parse_event",
    "iter_events",
    "StreamState",
    "StreamDecoder",
]
