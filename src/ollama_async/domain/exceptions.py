"""Error taxonomy for the Ollama client.

Every failure the client can report is an ``OllamaClientError``. Library
exceptions from httpx and pydantic never escape on their own; they are wrapped
into one of the three concrete errors below with the original exception
chained as ``__cause__``.

Exception Hierarchy:
    - OllamaClientError: Base exception for all client errors
    - EncodingError: Request payload could not be serialized to JSON
    - TransportError: Connection failure, timeout, or non-success HTTP status
    - DecodingError: Response body (or one streamed line) is not a valid record
"""

from __future__ import annotations


class OllamaClientError(Exception):
    """Base exception for all client errors.

    Catching OllamaClientError catches every error the client surfaces,
    for both one-shot calls and streaming consumption.
    """


class EncodingError(OllamaClientError):
    """Raised when a request payload cannot be serialized to JSON.

    Raised synchronously while building the request, before any network
    activity. Common causes:
        - NaN or infinite floats in generation options
        - Non-JSON values inside free-form ``tools`` or ``format`` dicts
    """


class TransportError(OllamaClientError):
    """Raised for connection failures, timeouts and non-success statuses.

    Attributes:
        status_code: HTTP status code when the server answered with a
            non-success status. None for connection-level failures.
        detail: Error description. For non-success statuses this is the
            ``error`` field of the server's error payload, or the raw body
            text when the payload is not JSON.
    """

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        message = f"HTTP {status_code}: {detail}" if status_code is not None else detail
        super().__init__(message)


class DecodingError(OllamaClientError):
    """Raised when a response body is not valid JSON or has the wrong shape.

    For streaming responses this terminates the stream; lines after the
    offending one are never processed.
    """
