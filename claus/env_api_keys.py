"""Environment configuration helpers.

The API key and request defaults can be taken from the process
environment, optionally seeded from a ``.env`` file through
python-dotenv.  Variables already present in the environment win over
the file.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

API_KEY_VAR = "ANTHROPIC_API_KEY"
MODEL_VAR = "ANTHROPIC_MODEL"
MAX_TOKENS_VAR = "ANTHROPIC_MAX_TOKENS"
ENDPOINT_HOST_VAR = "ANTHROPIC_ENDPOINT_HOST"


def load_env(dotenv_path: Optional[str] = None) -> bool:
    """Load a ``.env`` file into the environment without overriding set variables.

    Returns ``True`` if a file was found and read.
    """
    loaded = load_dotenv(dotenv_path=dotenv_path, override=False)
    if not loaded:
        logger.debug("no .env file found, using process environment only")
    return loaded


def has_api_key() -> bool:
    """Return True if the API key variable is set and non-empty."""
    return bool(os.getenv(API_KEY_VAR))


def get_api_key() -> str:
    key = os.getenv(API_KEY_VAR)
    if not key:
        raise ConfigurationError(f"environment variable {API_KEY_VAR} is not set")
    return key


def get_max_tokens() -> Optional[int]:
    raw = os.getenv(MAX_TOKENS_VAR)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{MAX_TOKENS_VAR} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{MAX_TOKENS_VAR} must be positive, got {value}")
    return value


__all__ = [
    "API_KEY_VAR",
    "MODEL_VAR",
    "MAX_TOKENS_VAR",
    "ENDPOINT_HOST_VAR",
    "load_env",
    "has_api_key",
    "get_api_key",
    "get_max_tokens",
]
