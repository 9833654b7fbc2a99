"""Token usage accounting.

The service reports token counters in a ``usage`` object: on the final
response, or split across ``message_start`` and ``message_delta`` when
streaming.  This module normalizes those into :class:`Usage` and keeps
running totals for a conversation in :class:`UsageTotals`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class Usage:
    """Token counters for one response.  ``None`` means "not reported"."""

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Usage"]:
        """Read a wire ``usage`` object.  Unknown counters are ignored.

        Returns ``None`` when *data* is not an object.
        """
        if not isinstance(data, dict):
            return None
        return cls(
            input_tokens=_safe_int(data.get("input_tokens")),
            output_tokens=_safe_int(data.get("output_tokens")),
            cache_creation_input_tokens=_safe_int(data.get("cache_creation_input_tokens")),
            cache_read_input_tokens=_safe_int(data.get("cache_read_input_tokens")),
        )

    def merge(self, update: Optional["Usage"]) -> "Usage":
        """Overlay the counters *update* reports on top of these.

        Streamed ``message_delta`` usage is cumulative, so a later value
        replaces an earlier one rather than adding to it.
        """
        if update is None:
            return self
        values = {}
        for item in fields(self):
            newer = getattr(update, item.name)
            values[item.name] = newer if newer is not None else getattr(self, item.name)
        return Usage(**values)

    @property
    def total_tokens(self) -> Optional[int]:
        if self.input_tokens is None and self.output_tokens is None:
            return None
        return (self.input_tokens or 0) + (self.output_tokens or 0)

    def to_dict(self) -> Dict[str, int]:
        return {item.name: getattr(self, item.name) for item in fields(self) if getattr(self, item.name) is not None}


@dataclass
class UsageTotals:
    """Running totals across the responses of one conversation."""

    calls: int = 0
    reported_calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    def accumulate(self, usage: Optional[Usage]) -> "UsageTotals":
        self.calls += 1
        if usage is None:
            return self
        self.reported_calls += 1
        self.input_tokens += usage.input_tokens or 0
        self.output_tokens += usage.output_tokens or 0
        self.cache_creation_input_tokens += usage.cache_creation_input_tokens or 0
        self.cache_read_input_tokens += usage.cache_read_input_tokens or 0
        return self

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


__all__ = ["Usage", "UsageTotals"]
