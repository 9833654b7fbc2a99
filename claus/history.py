"""Persistent conversation history.

:class:`ConversationHistory` is an immutable, ordered sequence of
:class:`~claus.content.Message` values.  It is stored as a chain of
nodes that point at their predecessor, so appending allocates exactly
one new node and every earlier node is shared with the history it was
derived from.  Two histories appended from the same prefix share that
prefix and never observe each other's tails.

Copying a history is free: the value itself is immutable, so
``copy.copy`` and :meth:`ConversationHistory.clone` return it unchanged.

>>> base = ConversationHistory().append(Message.from_text(Role.USER, "Hi"))
>>> left = base.append(Message.from_text(Role.ASSISTANT, "Hello"))
>>> right = base.append(Message.from_text(Role.ASSISTANT, "Hey"))
>>> len(base), len(left), len(right)
(1, 2, 2)
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Union, overload

from .content import Message, Role


class _Node:
    __slots__ = ("message", "parent", "length")

    def __init__(self, message: Message, parent: Optional["_Node"]) -> None:
        self.message = message
        self.parent = parent
        self.length = 1 if parent is None else parent.length + 1


class ConversationHistory:
    """Immutable sequence of messages with structural sharing."""

    __slots__ = ("_tail",)

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        tail: Optional[_Node] = None
        for message in messages:
            tail = _Node(message, tail)
        self._tail = tail

    @classmethod
    def _from_tail(cls, tail: Optional[_Node]) -> "ConversationHistory":
        history = cls.__new__(cls)
        history._tail = tail
        return history

    def append(self, message: Message) -> "ConversationHistory":
        """Return a new history with *message* at the end.  ``self`` is unchanged."""
        if not isinstance(message, Message):
            raise TypeError(f"expected Message, got {type(message).__name__}")
        return self._from_tail(_Node(message, self._tail))

    def extend(self, messages: Iterable[Message]) -> "ConversationHistory":
        tail = self._tail
        for message in messages:
            if not isinstance(message, Message):
                raise TypeError(f"expected Message, got {type(message).__name__}")
            tail = _Node(message, tail)
        return self._from_tail(tail)

    def append_text(self, role: Union[Role, str], text: str) -> "ConversationHistory":
        return self.append(Message.from_text(role, text))

    def prefix(self, length: int) -> "ConversationHistory":
        """Return the first *length* messages, sharing their storage.

        This is the branch point for retrying a conversation from an
        earlier turn.
        """
        if length < 0:
            raise ValueError("length must not be negative")
        node = self._tail
        while node is not None and node.length > length:
            node = node.parent
        return self._from_tail(node)

    def clone(self) -> "ConversationHistory":
        return self

    def __copy__(self) -> "ConversationHistory":
        return self

    def __deepcopy__(self, memo: dict) -> "ConversationHistory":
        return self

    @property
    def last(self) -> Optional[Message]:
        return self._tail.message if self._tail is not None else None

    def _nodes_reversed(self) -> Iterator[_Node]:
        node = self._tail
        while node is not None:
            yield node
            node = node.parent

    def __iter__(self) -> Iterator[Message]:
        # Nodes only link backwards; collect the chain once per iteration.
        nodes: List[_Node] = list(self._nodes_reversed())
        for node in reversed(nodes):
            yield node.message

    def __reversed__(self) -> Iterator[Message]:
        for node in self._nodes_reversed():
            yield node.message

    def __len__(self) -> int:
        return self._tail.length if self._tail is not None else 0

    @overload
    def __getitem__(self, index: int) -> Message: ...

    @overload
    def __getitem__(self, index: slice) -> List[Message]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return list(self)[index]
        size = len(self)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("history index out of range")
        for node in self._nodes_reversed():
            if node.length == index + 1:
                return node.message
        raise IndexError("history index out of range")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConversationHistory):
            return NotImplemented
        if len(self) != len(other):
            return False
        left, right = self._tail, other._tail
        while left is not None and right is not None:
            if left is right:
                # Shared prefix from here on.
                return True
            if left.message != right.message:
                return False
            left, right = left.parent, right.parent
        return True

    __hash__ = None  # type: ignore[assignment]

    def shares_prefix_with(self, other: "ConversationHistory") -> int:
        """Return how many leading messages are physically shared with *other*."""
        seen = {id(node): node.length for node in self._nodes_reversed()}
        for node in other._nodes_reversed():
            if id(node) in seen:
                return node.length
        return 0

    def to_list(self) -> List[dict]:
        return [message.to_dict() for message in self]

    def __repr__(self) -> str:
        return f"ConversationHistory(<{len(self)} messages>)"


__all__ = ["ConversationHistory"]
