"""Domain errors for the Ollama client."""

from ollama_async.domain.exceptions import (
    DecodingError,
    EncodingError,
    OllamaClientError,
    TransportError,
)

__all__ = [
    "DecodingError",
    "EncodingError",
    "OllamaClientError",
    "TransportError",
]
