# SPDX-License-Identifier: MIT
"""Configuration management for the fal.ai MCP server.

This module handles:
- Logging setup
- Environment variable parsing into a frozen Settings object
- Credential lookup for authenticated API surfaces
"""

import logging
import os
import sys
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, field_validator

from .errors import ConfigurationError

# ---------- Logging configuration ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,  # Log to stderr to avoid interfering with stdio MCP transport
)
logger = logging.getLogger("fal_mcp")

DEFAULT_API_URL = "https://api.fal.ai/v1"
DEFAULT_QUEUE_URL = "https://queue.fal.run"
DEFAULT_STORAGE_URL = "https://rest.alpha.fal.ai"

PayloadEnvelope = Literal["flat", "wrapped"]
UploadProtocol = Literal["two_phase", "multipart"]
CancelMethod = Literal["PUT", "POST"]


class Settings(BaseModel, frozen=True):
    """Process-wide configuration, read once and never mutated.

    ``api_key`` is optional: without it discovery still works, and every
    authenticated operation fails with :class:`ConfigurationError`.
    """

    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    queue_url: str = DEFAULT_QUEUE_URL
    storage_url: str = DEFAULT_STORAGE_URL
    payload_envelope: PayloadEnvelope = "flat"
    upload_protocol: UploadProtocol = "two_phase"
    cancel_method: CancelMethod = "PUT"
    server_side_search: bool = False
    timeout: float | None = None

    @field_validator("api_url", "queue_url", "storage_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        """Return the credential or fail before any request is built.

        Raises:
            ConfigurationError: If FAL_KEY is not configured
        """
        if not self.api_key:
            raise ConfigurationError(
                "FAL_KEY environment variable is not set. This operation requires authentication."
            )
        return self.api_key


# Env var -> Settings field
_ENV_FIELDS: dict[str, str] = {
    "FAL_KEY": "api_key",
    "FAL_API_URL": "api_url",
    "FAL_QUEUE_URL": "queue_url",
    "FAL_STORAGE_URL": "storage_url",
    "FAL_PAYLOAD_ENVELOPE": "payload_envelope",
    "FAL_UPLOAD_PROTOCOL": "upload_protocol",
    "FAL_CANCEL_METHOD": "cancel_method",
    "FAL_SERVER_SEARCH": "server_side_search",
    "FAL_HTTP_TIMEOUT": "timeout",
}

_NORMALIZERS = {
    "payload_envelope": str.lower,
    "upload_protocol": lambda v: v.lower().replace("-", "_"),
    "cancel_method": str.upper,
}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings from the environment (cached).

    Empty or whitespace-only variables are treated as unset.

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If a variable holds an unsupported value
    """
    values: dict[str, str] = {}
    for env_var, field in _ENV_FIELDS.items():
        raw = os.getenv(env_var)
        if raw is None or not raw.strip():
            continue
        value = raw.strip()
        normalize = _NORMALIZERS.get(field)
        values[field] = normalize(value) if normalize else value

    try:
        settings = Settings(**values)
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        bad = sorted({env for env, field in _ENV_FIELDS.items() if field in str(e)})
        raise ConfigurationError(f"Invalid configuration ({', '.join(bad) or 'environment'}): {e}") from e

    if settings.timeout is not None and settings.timeout <= 0:
        raise ConfigurationError(f"FAL_HTTP_TIMEOUT must be positive, got {settings.timeout}")
    return settings
