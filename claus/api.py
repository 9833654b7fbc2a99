"""API configuration.

An :class:`Api` holds everything needed to address the service: the
key, the endpoint host, the protocol version and the request defaults.
It is immutable and meant to be created once and shared by every
request built during a session.

>>> api = Api("sk-ant-api03-...")
>>> api.endpoint_host
'api.anthropic.com'
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from . import env_api_keys
from .models import ANTHROPIC_VERSION, DEFAULT_ENDPOINT_HOST, DEFAULT_MAX_TOKENS, DEFAULT_MODEL

logger = logging.getLogger(__name__)


def mask_secret(secret: str, visible: int = 7) -> str:
    """Shorten a secret for display, keeping only a short prefix."""
    if len(secret) <= visible:
        return "***"
    return f"{secret[:visible]}..."


@dataclass(frozen=True)
class Api:
    """Endpoint, credential and request defaults.

    Parameters
    ----------
    api_key : str
        The API key.  It is sent verbatim in the ``x-api-key`` header and
        is masked in ``repr``.
    model : str
        Model used when a request does not name one.
    max_tokens : int
        Response token limit used when a request does not set one.
    endpoint_host : str
        Hostname only, without scheme or path.
    temperature : float, optional
        Sampling temperature sent with every request unless overridden.
        Omitted from the body when ``None``.
    version : str
        Value of the ``anthropic-version`` header.
    """

    api_key: str = field(repr=False)
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    endpoint_host: str = DEFAULT_ENDPOINT_HOST
    temperature: Optional[float] = None
    version: str = ANTHROPIC_VERSION

    def __post_init__(self) -> None:
        if not self.endpoint_host or "/" in self.endpoint_host:
            raise ValueError(f"endpoint_host must be a bare hostname, got {self.endpoint_host!r}")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Api":
        """Build an :class:`Api` from environment variables.

        ``ANTHROPIC_API_KEY`` is required.  ``ANTHROPIC_MODEL``,
        ``ANTHROPIC_MAX_TOKENS`` and ``ANTHROPIC_ENDPOINT_HOST`` override the
        defaults when set.
        """
        env_api_keys.load_env(dotenv_path)
        api = cls(env_api_keys.get_api_key())
        model = os.getenv(env_api_keys.MODEL_VAR)
        if model:
            api = api.with_model(model)
        max_tokens = env_api_keys.get_max_tokens()
        if max_tokens is not None:
            api = api.with_max_tokens(max_tokens)
        host = os.getenv(env_api_keys.ENDPOINT_HOST_VAR)
        if host:
            api = api.with_endpoint_host(host)
        logger.debug("configured api from environment: %r", api)
        return api

    def with_model(self, model: str) -> "Api":
        return replace(self, model=model)

    def with_max_tokens(self, max_tokens: int) -> "Api":
        return replace(self, max_tokens=max_tokens)

    def with_endpoint_host(self, endpoint_host: str) -> "Api":
        return replace(self, endpoint_host=endpoint_host)

    def with_temperature(self, temperature: Optional[float]) -> "Api":
        return replace(self, temperature=temperature)

    def default_headers(self) -> List[Tuple[str, str]]:
        """Headers every request carries, in wire order."""
        return [
            ("content-type", "application/json"),
            ("anthropic-version", self.version),
            ("x-api-key", self.api_key),
        ]

    def __repr__(self) -> str:
        return (
            f"Api(api_key={mask_secret(self.api_key)!r}, model={self.model!r}, "
            f"max_tokens={self.max_tokens!r}, endpoint_host={self.endpoint_host!r}, "
            f"temperature={self.temperature!r}, version={self.version!r})"
        )


__all__ = ["Api", "mask_secret"]
