"""Error types raised by claus.

Every error raised by this package derives from :class:`ClausError`, so
callers can catch a single type at the transport boundary.  Decoding and
stream errors carry enough context (field name, block index, upstream
error type) to log or retry at a higher layer.  Nothing here is retried
internally.
"""

from typing import Optional


class ClausError(Exception):
    """Base class for all claus errors."""


class ConfigurationError(ClausError, ValueError):
    """Missing or invalid configuration, e.g. no API key in the environment."""


class DecodeError(ClausError, ValueError):
    """A response payload could not be decoded."""


class MalformedResponse(DecodeError):
    """The payload is not valid JSON, or not a JSON object."""


class MissingField(DecodeError):
    """A structurally required field is absent."""

    def __init__(self, field: str, context: Optional[str] = None) -> None:
        self.field = field
        self.context = context
        where = f" in {context}" if context else ""
        super().__init__(f"missing required field {field!r}{where}")


class InvalidField(DecodeError):
    """A required field is present but has the wrong JSON type."""

    def __init__(self, field: str, expected: str, context: Optional[str] = None) -> None:
        self.field = field
        self.expected = expected
        self.context = context
        where = f" in {context}" if context else ""
        super().__init__(f"field {field!r}{where} must be {expected}")


class UnexpectedRole(DecodeError):
    """A decoded message has a role other than the one expected."""

    def __init__(self, role: object, expected: str = "assistant") -> None:
        self.role = role
        self.expected = expected
        super().__init__(f"unexpected role {role!r}, expected {expected!r}")


class ApiError(ClausError):
    """The service answered with an explicit error payload.

    ``error_type`` is the wire value, e.g. ``"overloaded_error"``.  Unknown
    types are kept verbatim.
    """

    KNOWN_TYPES = (
        "invalid_request_error",
        "authentication_error",
        "permission_error",
        "not_found_error",
        "request_too_large",
        "rate_limit_error",
        "api_error",
        "overloaded_error",
    )

    def __init__(self, error_type: str, message: str = "") -> None:
        self.error_type = error_type
        self.message = message
        super().__init__(f"{error_type}: {message}" if message else error_type)

    @property
    def is_known(self) -> bool:
        return self.error_type in self.KNOWN_TYPES


class StreamProtocolError(ClausError):
    """A streamed response violated the event ordering contract."""


class OutOfOrderEvent(StreamProtocolError):
    """An event arrived in a state that does not accept it."""

    def __init__(self, event_type: str, state: str, detail: str = "") -> None:
        self.event_type = event_type
        self.state = state
        self.detail = detail
        message = f"unexpected {event_type!r} event in state {state}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DuplicateBlockIndex(StreamProtocolError):
    """A content block was started with an index that was already used."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"content block index {index} started twice")


class PrematureStop(StreamProtocolError):
    """``message_stop`` arrived before the message was complete."""


class UpstreamError(StreamProtocolError):
    """The service sent an ``error`` event in the middle of a stream."""

    def __init__(self, error_type: str, message: str = "") -> None:
        self.error_type = error_type
        self.message = message
        super().__init__(f"{error_type}: {message}" if message else error_type)


__all__ = [
    "ClausError",
    "ConfigurationError",
    "DecodeError",
    "MalformedResponse",
    "MissingField",
    "InvalidField",
    "UnexpectedRole",
    "ApiError",
    "StreamProtocolError",
    "OutOfOrderEvent",
    "DuplicateBlockIndex",
    "PrematureStop",
    "UpstreamError",
]
