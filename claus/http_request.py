"""Transport-neutral HTTP request.

:class:`HttpRequest` describes a request to the service without
committing to an HTTP client.  Hand its fields to whichever client you
use, or see :mod:`claus.transport` for a ready-made conversion to
``requests``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .api import mask_secret

SECRET_HEADERS = ("x-api-key",)


@dataclass(frozen=True)
class HttpRequest:
    """An HTTP request ready to be sent.

    ``headers`` keeps wire order; ``Host`` is not among them.  ``body`` is
    the exact byte payload.
    """

    method: str
    host: str
    path: str
    headers: Tuple[Tuple[str, str], ...]
    body: bytes

    @property
    def url(self) -> str:
        return f"https://{self.host}{self.path}"

    @property
    def body_text(self) -> str:
        return self.body.decode("utf-8")

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    def render_headers(self) -> str:
        """Render the headers as ``name: value`` lines, newline-joined.

        The output contains the API key verbatim; it is meant for sending,
        not for logging.
        """
        return "\n".join(f"{key}: {value}" for key, value in self.headers)

    def _masked_headers(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(
            (key, mask_secret(value) if key.lower() in SECRET_HEADERS else value)
            for key, value in self.headers
        )

    def __str__(self) -> str:
        lines = [f"{self.method} {self.path} HTTP/1.1", f"Host: {self.host}"]
        lines.extend(f"{key}: {value}" for key, value in self._masked_headers())
        lines.append("")
        lines.append(self.body.decode("utf-8", errors="replace"))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"HttpRequest(method={self.method!r}, host={self.host!r}, path={self.path!r}, "
            f"headers={self._masked_headers()!r}, body=<{len(self.body)} bytes>)"
        )


__all__ = ["HttpRequest"]
