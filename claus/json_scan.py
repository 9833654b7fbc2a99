"""Incremental splitting of concatenated JSON objects.

Some transports deliver a stream as raw bytes holding one JSON object
after another, cut at arbitrary points.  :class:`JsonObjectSplitter`
finds the object boundaries without parsing: it tracks brace depth and
whether it is inside a string, so braces in string values do not count.
Only the unfinished tail is buffered.
"""

from typing import List

from .exceptions import MalformedResponse

_OPEN = ord("{")
_CLOSE = ord("}")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_WHITESPACE = frozenset(b" \t\r\n")

LOOKING_FOR_START = "looking_for_start"
IN_OBJECT = "in_object"
IN_STRING = "in_string"
IN_ESCAPE = "in_escape"


class JsonObjectSplitter:
    """Cut a byte stream into complete top-level JSON objects.

    >>> splitter = JsonObjectSplitter()
    >>> splitter.feed(b'{"a": "}"} {"b"')
    [b'{"a": "}"}']
    >>> splitter.feed(b': 1}')
    [b'{"b": 1}']
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._state = LOOKING_FOR_START
        self._depth = 0
        self._start = 0
        self._scanned = 0

    @property
    def has_pending(self) -> bool:
        """True if part of an object has been fed but not yet returned."""
        return self._state != LOOKING_FOR_START

    def feed(self, chunk: bytes) -> List[bytes]:
        """Add *chunk* and return every object it completes, in order."""
        self._buffer.extend(chunk)
        found: List[bytes] = []
        buffer = self._buffer
        index = self._scanned
        while index < len(buffer):
            byte = buffer[index]
            if self._state == LOOKING_FOR_START:
                if byte in _WHITESPACE:
                    index += 1
                    continue
                if byte != _OPEN:
                    raise MalformedResponse(f"expected '{{' at stream offset {index}, got {chr(byte)!r}")
                self._state = IN_OBJECT
                self._depth = 1
                self._start = index
            elif self._state == IN_OBJECT:
                if byte == _OPEN:
                    self._depth += 1
                elif byte == _CLOSE:
                    self._depth -= 1
                    if self._depth == 0:
                        found.append(bytes(buffer[self._start:index + 1]))
                        del buffer[:index + 1]
                        self._state = LOOKING_FOR_START
                        self._start = 0
                        index = 0
                        continue
                elif byte == _QUOTE:
                    self._state = IN_STRING
            elif self._state == IN_STRING:
                if byte == _QUOTE:
                    self._state = IN_OBJECT
                elif byte == _BACKSLASH:
                    self._state = IN_ESCAPE
            else:
                self._state = IN_STRING
            index += 1
        if self._state == LOOKING_FOR_START:
            # Only whitespace left over.
            del buffer[:]
            index = 0
        self._scanned = index
        return found


__all__ = ["JsonObjectSplitter"]
