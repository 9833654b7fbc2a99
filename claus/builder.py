"""Request builder for the messages endpoint.

:class:`MessagesRequestBuilder` collects messages and per-request
options, then renders an :class:`~claus.http_request.HttpRequest` with
:meth:`~MessagesRequestBuilder.build`.  Every option method returns a new
builder; the one it was called on is left untouched, so a partially
configured builder can be reused as a template.

>>> request = (
...     MessagesRequestBuilder()
...     .push_message(Role.USER, "Hello, world!")
...     .build(Api("sk-ant-api03-..."))
... )
>>> request.path
'/v1/messages'

The builder renders, it does not validate: an empty message list or
two consecutive turns by the same role are sent as they are.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from .api import Api
from .content import Message, Role
from .history import ConversationHistory
from .http_request import HttpRequest
from .models import MESSAGES_PATH
from .tools import Tool

logger = logging.getLogger(__name__)


def dumps_compact(payload: Any) -> bytes:
    """Serialize *payload* as compact UTF-8 JSON, preserving key order."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True)
class MessagesRequestBuilder:
    """Accumulates a messages request.

    Unset options fall back to the :class:`~claus.api.Api` passed to
    :meth:`build`.
    """

    messages: ConversationHistory = field(default_factory=ConversationHistory)
    model_name: Optional[str] = None
    max_tokens_value: Optional[int] = None
    system_prompt: Optional[str] = None
    temperature_value: Optional[float] = None
    stream_enabled: bool = False
    tool_list: Optional[Tuple[Tool, ...]] = None

    def model(self, model: str) -> "MessagesRequestBuilder":
        return replace(self, model_name=model)

    def max_tokens(self, max_tokens: int) -> "MessagesRequestBuilder":
        return replace(self, max_tokens_value=max_tokens)

    def system(self, system: str) -> "MessagesRequestBuilder":
        """Set the system prompt.  Omitted from the body when never set."""
        return replace(self, system_prompt=system)

    def temperature(self, temperature: float) -> "MessagesRequestBuilder":
        return replace(self, temperature_value=temperature)

    def stream(self, enabled: bool = True) -> "MessagesRequestBuilder":
        """Ask for a streamed response, to be read with :class:`~claus.stream.StreamDecoder`."""
        return replace(self, stream_enabled=enabled)

    def set_tools(self, tools: Iterable[Tool]) -> "MessagesRequestBuilder":
        return replace(self, tool_list=tuple(tools))

    def push(self, message: Message) -> "MessagesRequestBuilder":
        return replace(self, messages=self.messages.append(message))

    def push_message(self, role: Union[Role, str], text: str) -> "MessagesRequestBuilder":
        """Append a message holding a single text block."""
        return self.push(Message.from_text(role, text))

    def set_messages(self, messages: Union[ConversationHistory, Iterable[Message]]) -> "MessagesRequestBuilder":
        """Replace all messages.  A :class:`ConversationHistory` is shared, not copied."""
        if not isinstance(messages, ConversationHistory):
            messages = ConversationHistory(messages)
        return replace(self, messages=messages)

    def body(self, api: Api) -> Dict[str, Any]:
        """Return the JSON body as an ordered dict."""
        payload: Dict[str, Any] = {
            "model": self.model_name if self.model_name is not None else api.model,
            "max_tokens": self.max_tokens_value if self.max_tokens_value is not None else api.max_tokens,
        }
        if self.system_prompt is not None:
            payload["system"] = self.system_prompt
        payload["messages"] = [message.to_dict() for message in self.messages]
        if self.tool_list is not None:
            payload["tools"] = [tool.to_dict() for tool in self.tool_list]
        temperature = self.temperature_value if self.temperature_value is not None else api.temperature
        if temperature is not None:
            payload["temperature"] = temperature
        if self.stream_enabled:
            payload["stream"] = True
        return payload

    def build(self, api: Api) -> HttpRequest:
        """Render the request.  Reads *api* and the history, mutates neither."""
        payload = self.body(api)
        headers = api.default_headers()
        headers.append(("anthropic-model", payload["model"]))
        headers.append(("max-tokens", str(payload["max_tokens"])))
        body = dumps_compact(payload)
        logger.debug(
            "built messages request: model=%s messages=%d stream=%s body=%d bytes",
            payload["model"],
            len(self.messages),
            self.stream_enabled,
            len(body),
        )
        return HttpRequest(
            method="POST",
            host=api.endpoint_host,
            path=MESSAGES_PATH,
            headers=tuple(headers),
            body=body,
        )


__all__ = ["MessagesRequestBuilder", "dumps_compact"]
