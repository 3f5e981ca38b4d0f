"""Core helpers: configuration and the streaming decoder."""

from ollama_async.core.config import DEFAULT_BASE_URL, ClientSettings
from ollama_async.core.streaming import (
    ResponseStream,
    Subscription,
    decode_records,
    iter_lines,
    stream_records,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ClientSettings",
    "ResponseStream",
    "Subscription",
    "decode_records",
    "iter_lines",
    "stream_records",
]
