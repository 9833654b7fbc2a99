"""Protocol constants and default values.

This module centralises the values every request is built from when
the caller does not override them.  Other modules import these to fill
in an :class:`~claus.api.Api` or an outgoing request.
"""

# Protocol version sent in the ``anthropic-version`` header
ANTHROPIC_VERSION = "2023-06-01"

# Hostname only, no scheme or path
DEFAULT_ENDPOINT_HOST = "api.anthropic.com"

DEFAULT_MODEL = "claude-sonnet-4-20250514"

DEFAULT_MAX_TOKENS = 1024

MESSAGES_PATH = "/v1/messages"

__all__ = [
    "ANTHROPIC_VERSION",
    "DEFAULT_ENDPOINT_HOST",
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TOKENS",
    "MESSAGES_PATH",
]
