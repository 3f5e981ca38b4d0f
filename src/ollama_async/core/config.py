"""Environment-driven configuration for the Ollama client.

Settings are loaded with pydantic-settings from ``OLLAMA_*`` environment
variables and an optional ``.env`` file, validated once, and cached.

Environment Variables:
    - OLLAMA_BASE_URL: Server base URL (default: http://localhost:11434)
    - OLLAMA_AUTH_TOKEN: Bearer token sent with every request (default: unset)
    - OLLAMA_TIMEOUT: Read timeout in seconds for long operations (default: 300)
    - OLLAMA_CONNECT_TIMEOUT: Connect/write/pool timeout in seconds (default: 5)
    - OLLAMA_REQUEST_LOG: Path of the JSON Lines request log (default: disabled)

Usage:
    from ollama_async.core.config import ClientSettings

    settings = ClientSettings.get_settings()
    base_url = settings.base_url
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "http://localhost:11434"


class ClientSettings(BaseSettings):
    """Client configuration loaded from the environment.

    Attributes:
        base_url: Server base URL. Must start with http:// or https://.
        auth_token: Optional bearer token.
        timeout: Read timeout in seconds. None disables the read timeout.
        connect_timeout: Connect, write and pool timeout in seconds.
        request_log: File receiving structured request events. None disables
            request logging.
    """

    model_config = SettingsConfigDict(
        env_prefix="OLLAMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Ollama server base URL")
    auth_token: str | None = Field(default=None, description="Bearer token")
    timeout: float | None = Field(default=300.0, gt=0, description="Read timeout (seconds)")
    connect_timeout: float = Field(
        default=5.0, gt=0, le=300.0, description="Connect/write/pool timeout (seconds)"
    )
    request_log: Path | None = Field(default=None, description="JSON Lines request log path")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url is an http(s) URL and strip trailing slashes.

        Raises:
            ValueError: If base_url doesn't start with http:// or https://.
        """
        if not v.startswith(("http://", "https://")):
            msg = "base_url must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")

    @classmethod
    @lru_cache(maxsize=1)
    def get_settings(cls) -> ClientSettings:
        """Return the cached settings instance.

        Environment changes after the first call require
        ``ClientSettings.get_settings.cache_clear()``.
        """
        return cls()


__all__ = ["DEFAULT_BASE_URL", "ClientSettings"]
