"""Structured request logging for the Ollama client.

Request events are written as JSON Lines (one JSON object per line) through a
dedicated, non-propagating ``ollama_async.requests`` logger. The log file is
taken from ``OLLAMA_REQUEST_LOG``; when it is unset the logger has only a
NullHandler and events are dropped.

Event Schema:
    All events include:
        - event: Event type identifier ("ollama_request")
        - operation: Client operation ("chat", "list_models", ...)
        - status: "success" or "error"
        - request_id: Unique identifier of the call
        - latency_ms: Wall-clock time of the call in milliseconds
        - timestamp: ISO 8601 timestamp (auto-injected if missing)
    Error events add error_type, error_message and, for HTTP errors,
    http_status.
"""

from __future__ import annotations

import functools
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from ollama_async.core.config import ClientSettings

REQUEST_LOGGER_NAME = "ollama_async.requests"


@functools.cache
def get_request_logger() -> logging.Logger:
    """Configure and return the request event logger.

    Configuration happens once; the result is cached.

    Side effects:
        Creates the parent directory of the log file if needed.
    """
    request_logger = logging.getLogger(REQUEST_LOGGER_NAME)
    request_logger.propagate = False

    log_path = ClientSettings.get_settings().request_log
    if log_path is None:
        request_logger.addHandler(logging.NullHandler())
        return request_logger

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(handler)
    request_logger.setLevel(logging.INFO)
    return request_logger


def _json_default(value: Any) -> Any:
    """Fallback serializer for datetime and Path objects."""
    match value:
        case datetime():
            return TypeAdapter(datetime).dump_python(value, mode="json")
        case Path():
            return str(value)
        case _:
            return str(value)


def log_request_event(event: dict[str, Any]) -> None:
    """Emit a structured request event.

    Args:
        event: Event payload. The 'timestamp' field is added if missing
            (mutates the input dict).

    Example:
        >>> log_request_event({
        ...     "event": "ollama_request",
        ...     "operation": "chat",
        ...     "status": "success",
        ...     "latency_ms": 1234.56,
        ... })
    """
    event.setdefault("timestamp", datetime.now(UTC).isoformat())
    get_request_logger().info(json.dumps(event, default=_json_default))


__all__ = ["REQUEST_LOGGER_NAME", "get_request_logger", "log_request_event"]
