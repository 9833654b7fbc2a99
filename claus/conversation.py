"""Stateful conversation controller.

:class:`Conversation` binds one :class:`~claus.api.Api` to one
:class:`~claus.history.ConversationHistory` and turns the usual chat
loop into two calls: :meth:`~Conversation.user_message` to get the next
request, and :meth:`~Conversation.handle_response` to record the reply.

The controller does not branch.  To fork a conversation, take its
:attr:`~Conversation.history` (or a :meth:`~ConversationHistory.prefix`
of it) and start a second controller from that value; both continue
independently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from .api import Api
from .builder import MessagesRequestBuilder
from .content import ContentBlock, Message, Role, TextBlock, ToolResultBlock, ToolUseBlock, tool_result_message
from .decoder import DecodedTurn, StopReason, decode_response
from .history import ConversationHistory
from .http_request import HttpRequest
from .stream import StreamDecoder
from .tools import Tool
from .usage import Usage, UsageTotals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedAction:
    """What an assistant reply asks the caller to do: show content, maybe run tools."""

    content: Tuple[ContentBlock, ...]
    stop_reason: Optional[StopReason]
    usage: Optional[Usage] = None

    @property
    def text(self) -> str:
        """Text blocks joined by newlines."""
        return "\n".join(block.text for block in self.content if isinstance(block, TextBlock))

    @property
    def tool_uses(self) -> Tuple[ToolUseBlock, ...]:
        return tuple(block for block in self.content if isinstance(block, ToolUseBlock))

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_uses)


class Conversation:
    """Holds the current history of one chat and builds its requests.

    Parameters
    ----------
    api : Api
        Endpoint and defaults for every request.
    history : ConversationHistory, optional
        Starting point, e.g. a prefix taken from another conversation.
    system : str, optional
        System prompt sent with every request.
    tools : iterable of Tool, optional
        Tools offered to the model with every request.
    stream : bool
        Request streamed responses; feed them to a
        :class:`~claus.stream.StreamDecoder` and pass it to
        :meth:`handle_stream`.
    """

    def __init__(
        self,
        api: Api,
        history: Optional[ConversationHistory] = None,
        system: Optional[str] = None,
        tools: Optional[Iterable[Tool]] = None,
        stream: bool = False,
    ) -> None:
        self.api = api
        self.system = system
        self.tools: Optional[Tuple[Tool, ...]] = tuple(tools) if tools is not None else None
        self.stream = stream
        self.usage_totals = UsageTotals()
        self._history = history if history is not None else ConversationHistory()

    @property
    def history(self) -> ConversationHistory:
        """The current history value.  Later turns never alter a value already handed out."""
        return self._history

    @property
    def message_count(self) -> int:
        return len(self._history)

    def set_system(self, system: Optional[str]) -> "Conversation":
        self.system = system
        return self

    def clear(self) -> None:
        self._history = ConversationHistory()

    def _builder(self) -> MessagesRequestBuilder:
        builder = MessagesRequestBuilder().set_messages(self._history)
        if self.system is not None:
            builder = builder.system(self.system)
        if self.tools is not None:
            builder = builder.set_tools(self.tools)
        if self.stream:
            builder = builder.stream()
        return builder

    def request(self) -> HttpRequest:
        """Build a request for the current history without adding anything."""
        return self._builder().build(self.api)

    def user_message(self, text: str) -> HttpRequest:
        """Append a user turn holding *text* and return the request to send."""
        self._history = self._history.append(Message.from_text(Role.USER, text))
        return self.request()

    def tool_results(self, results: Iterable[ToolResultBlock]) -> HttpRequest:
        """Append a user turn carrying tool results and return the request to send."""
        message = tool_result_message(results)
        if not message.content:
            raise ValueError("at least one tool result is required")
        self._history = self._history.append(message)
        return self.request()

    def _record(self, turn: DecodedTurn) -> DecodedAction:
        if turn.is_empty:
            # Requests never carry empty turns.
            logger.debug("assistant turn %s has no content, not added to history", turn.id)
        else:
            self._history = self._history.append(turn.message)
        self.usage_totals.accumulate(turn.usage)
        return DecodedAction(content=turn.content, stop_reason=turn.stop_reason, usage=turn.usage)

    def handle_response(self, response_json: Union[bytes, str]) -> DecodedAction:
        """Decode a complete response, append the assistant turn and return its content.

        Decoding errors propagate and leave the history unchanged.  A reply
        with no content blocks is returned (``DecodedAction.content`` is
        empty) but not added to the history.
        """
        return self._record(decode_response(response_json))

    def handle_stream(self, decoder: StreamDecoder) -> DecodedAction:
        """Record the result of a completed :class:`~claus.stream.StreamDecoder`.

        Raises the decoder's error, or
        :class:`~claus.exceptions.PrematureStop` if it has not completed.
        """
        return self._record(decoder.result())

    def __repr__(self) -> str:
        return f"Conversation(api={self.api!r}, messages={len(self._history)})"


__all__ = ["Conversation", "DecodedAction"]
