"""Messages and their content blocks.

A :class:`Message` is one turn of a conversation: a :class:`Role` and an
ordered tuple of content blocks.  Blocks are a closed set of known kinds
plus :class:`OpaqueBlock`, which carries any block whose ``type`` this
package does not know so that it survives a decode/encode cycle
unchanged.

All types here are immutable.  JSON payloads held by blocks (tool input,
opaque blocks) are copied on the way in and on the way out, and must be
treated as read-only.  ``to_dict`` produces the wire shape with
the ``type`` discriminator as the first key.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Tuple, Union

from .exceptions import InvalidField, MissingField, UnexpectedRole


class Role(str, Enum):
    """Author of a message.  The API knows no other roles."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class TextBlock:
    text: str

    type = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool invocation requested by the model.

    ``input`` is the tool's argument object exactly as the model produced
    it; it is never interpreted here.
    """

    id: str
    name: str
    input: Any = field(default_factory=dict)

    type = "tool_use"

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", copy.deepcopy(self.input))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "name": self.name, "input": copy.deepcopy(self.input)}

    def __str__(self) -> str:
        return f"<tool_use {self.name} {self.id}>"


@dataclass(frozen=True)
class ToolResultBlock:
    """The outcome of a tool call, sent back by the user side.

    ``content`` is either a plain string or a tuple of content blocks.
    """

    tool_use_id: str
    content: Union[str, Tuple["ContentBlock", ...]] = ""
    is_error: bool = False

    type = "tool_result"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "tool_use_id": self.tool_use_id}
        if isinstance(self.content, str):
            data["content"] = self.content
        else:
            data["content"] = [block.to_dict() for block in self.content]
        if self.is_error:
            data["is_error"] = True
        return data

    def __str__(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "\n".join(str(block) for block in self.content)


@dataclass(frozen=True)
class ThinkingBlock:
    thinking: str
    signature: str = ""

    type = "thinking"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "thinking": self.thinking, "signature": self.signature}

    def __str__(self) -> str:
        return self.thinking


@dataclass(frozen=True)
class OpaqueBlock:
    """A block of a kind this package does not know.

    ``raw`` is the block's JSON object as received.  Encoding it again
    yields the same object, with ``type`` moved to the front.
    """

    raw: Dict[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", copy.deepcopy(self.raw))

    @property
    def type(self) -> str:
        return str(self.raw.get("type", ""))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.raw.get("type")}
        for key, value in self.raw.items():
            if key != "type":
                data[key] = copy.deepcopy(value)
        return data

    def __str__(self) -> str:
        return f"<{self.type}>"


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock, ThinkingBlock, OpaqueBlock]


def _require(data: Dict[str, Any], name: str, kind: type, expected: str, context: str) -> Any:
    if name not in data:
        raise MissingField(name, context)
    value = data[name]
    if not isinstance(value, kind):
        raise InvalidField(name, expected, context)
    return value


def block_from_dict(data: Any, context: str = "content block") -> ContentBlock:
    """Decode one wire content block.

    Known kinds are strict about their required fields; unknown kinds
    become an :class:`OpaqueBlock`.  Extra fields on known kinds are
    ignored.
    """
    if not isinstance(data, dict):
        raise InvalidField("content", "an array of objects", context)
    block_type = _require(data, "type", str, "a string", context)

    if block_type == "text":
        return TextBlock(text=_require(data, "text", str, "a string", context))
    if block_type == "tool_use":
        if "input" not in data:
            raise MissingField("input", context)
        return ToolUseBlock(
            id=_require(data, "id", str, "a string", context),
            name=_require(data, "name", str, "a string", context),
            input=data["input"],
        )
    if block_type == "tool_result":
        raw_content = data.get("content", "")
        content: Union[str, Tuple[ContentBlock, ...]]
        if isinstance(raw_content, list):
            content = tuple(block_from_dict(item, context) for item in raw_content)
        elif isinstance(raw_content, str):
            content = raw_content
        else:
            raise InvalidField("content", "a string or an array", context)
        return ToolResultBlock(
            tool_use_id=_require(data, "tool_use_id", str, "a string", context),
            content=content,
            is_error=bool(data.get("is_error", False)),
        )
    if block_type == "thinking":
        signature = data.get("signature") or ""
        return ThinkingBlock(
            thinking=_require(data, "thinking", str, "a string", context),
            signature=str(signature),
        )
    return OpaqueBlock(raw=dict(data))


@dataclass(frozen=True)
class Message:
    """One conversation turn.

    Iterating over a message yields its content blocks.
    """

    role: Role
    content: Tuple[ContentBlock, ...] = ()

    def __post_init__(self) -> None:
        # Accept plain role strings and lists for convenience; store canonical types.
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))
        if not isinstance(self.content, tuple):
            object.__setattr__(self, "content", tuple(self.content))

    @classmethod
    def from_text(cls, role: Union[Role, str], text: str) -> "Message":
        """Build a message holding a single text block."""
        return cls(role=Role(role), content=(TextBlock(text),))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Decode a wire message object (``role`` and ``content``).

        ``content`` may be a string, which is shorthand for one text block.
        """
        if "role" not in data:
            raise MissingField("role", "message")
        try:
            role = Role(data["role"])
        except ValueError:
            raise UnexpectedRole(data["role"], expected="user or assistant") from None
        if "content" not in data:
            raise MissingField("content", "message")
        raw = data["content"]
        if isinstance(raw, str):
            return cls.from_text(role, raw)
        if not isinstance(raw, list):
            raise InvalidField("content", "an array", "message")
        return cls(role=role, content=tuple(block_from_dict(item) for item in raw))

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": [block.to_dict() for block in self.content]}

    @property
    def text(self) -> str:
        """Concatenate the text blocks, one per line."""
        return "\n".join(block.text for block in self.content if isinstance(block, TextBlock))

    def tool_uses(self) -> Tuple[ToolUseBlock, ...]:
        return tuple(block for block in self.content if isinstance(block, ToolUseBlock))

    def __iter__(self) -> Iterator[ContentBlock]:
        return iter(self.content)


def tool_result_message(results: Iterable[ToolResultBlock]) -> Message:
    """Wrap tool results in a user message."""
    return Message(role=Role.USER, content=tuple(results))


__all__ = [
    "Role",
    "TextBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "ThinkingBlock",
    "OpaqueBlock",
    "ContentBlock",
    "block_from_dict",
    "Message",
    "tool_result_message",
]
