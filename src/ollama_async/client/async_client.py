"""Asynchronous client for the Ollama REST API.

This module provides the client facade: one method per API operation, built
on httpx. One-shot operations return a single decoded value; chat, generate
and streamed pulls return a ``ResponseStream`` that can be iterated (pull) or
subscribed to (push).

Key behaviors:
    - Uses httpx.AsyncClient for async HTTP operations
    - Requests are built per call from an immutable configuration
    - Streaming calls build and encode their request eagerly, so encoding
      errors surface at call time; no I/O happens until the stream is consumed
    - Every failure is raised as an OllamaClientError subclass; nothing is
      retried or replaced with a default value
    - Structured request events are logged for successes and errors

Concurrency:
    - Calls are independent and safe to run concurrently from several tasks
    - Each stream owns its HTTP response exclusively

Lifecycle:
    - Use as an async context manager, or call close() when done
    - The underlying httpx client is created lazily on first use
"""

from __future__ import annotations

import logging
import time
import types
import uuid
from collections.abc import AsyncGenerator
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, TypeVar, overload

import httpx
from pydantic import BaseModel

from ollama_async.api.endpoints import (
    Chat,
    CopyModel,
    DeleteModel,
    Embeddings,
    Endpoint,
    Generate,
    ListModels,
    ModelInfo,
    PullModel,
    Root,
)
from ollama_async.api.models import (
    ChatRequest,
    ChatResponse,
    CopyModelRequest,
    DeleteModelRequest,
    EmbeddingsRequest,
    EmbeddingsResponse,
    GenerateRequest,
    GenerateResponse,
    ModelInfoRequest,
    ModelInfoResponse,
    ModelList,
    PullModelRequest,
    PullModelResponse,
)
from ollama_async.api.router import RouterConfig, build_request
from ollama_async.core.config import DEFAULT_BASE_URL, ClientSettings
from ollama_async.core.streaming import (
    ResponseStream,
    decode_record,
    error_from_response,
    stream_records,
)
from ollama_async.domain.exceptions import OllamaClientError, TransportError
from ollama_async.telemetry.structured_logging import log_request_event

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


@dataclass(slots=True, frozen=True)
class AsyncOllamaConfig:
    """Configuration for the asynchronous Ollama client.

    Immutable configuration object. All time values are in seconds.

    Attributes:
        base_url: Base URL for the Ollama server (default: "http://localhost:11434").
        auth_token: Bearer token added to every request. None or empty sends
            no Authorization header.
        timeout: Read timeout for long operations like generation (default:
            300). None waits indefinitely.
        connect_timeout: Connect, write and pool timeout (default: 5).
        client_timeout: Custom httpx.Timeout instance (None = build from the
            two values above).
        transport: Custom httpx transport (None = httpx default).
    """

    base_url: str = DEFAULT_BASE_URL
    auth_token: str | None = field(default=None, repr=False)
    timeout: float | None = 300.0
    connect_timeout: float = 5.0
    client_timeout: httpx.Timeout | None = field(default=None, repr=False)
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)

    @classmethod
    def from_settings(
        cls, settings: ClientSettings | None = None, **overrides: Any
    ) -> AsyncOllamaConfig:
        """Build a configuration from environment settings.

        Args:
            settings: Settings to read. If None, uses the cached
                ClientSettings.get_settings().
            **overrides: Field values taking precedence over the settings.
        """
        settings = settings or ClientSettings.get_settings()
        values: dict[str, Any] = {
            "base_url": settings.base_url,
            "auth_token": settings.auth_token,
            "timeout": settings.timeout,
            "connect_timeout": settings.connect_timeout,
        }
        values.update(overrides)
        return cls(**values)

    def router_config(self) -> RouterConfig:
        return RouterConfig(base_url=self.base_url, auth_token=self.auth_token)


class AsyncOllamaClient:
    """Async client for the Ollama REST API.

    Attributes:
        config: Client configuration (AsyncOllamaConfig).
        client: httpx.AsyncClient instance (initialized lazily).

    Example:
        async with AsyncOllamaClient() as ollama:
            request = ChatRequest(
                model="llama3.2",
                messages=[Message(role=Role.USER, content="Hi!")],
            )
            async with ollama.chat(request) as stream:
                async for part in stream:
                    print(part.message.content, end="")
    """

    __slots__ = ("client", "config")

    def __init__(self, config: AsyncOllamaConfig | None = None) -> None:
        """Initialize the client.

        Args:
            config: Client configuration. If None, built from the environment
                with AsyncOllamaConfig.from_settings().
        """
        self.config = config or AsyncOllamaConfig.from_settings()
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AsyncOllamaClient:
        self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the httpx client, creating it on first use."""
        if self.client is None:
            timeout = self.config.client_timeout or httpx.Timeout(
                self.config.connect_timeout,
                read=self.config.timeout,
            )
            self.client = httpx.AsyncClient(timeout=timeout, transport=self.config.transport)
        return self.client

    async def close(self) -> None:
        """Close the httpx client. Safe to call multiple times."""
        if self.client:
            await self.client.aclose()
            self.client = None

    # ------------------------------------------------------------------
    # One-shot operations
    # ------------------------------------------------------------------

    async def ping(self) -> None:
        """Check that the server root answers ``HEAD /`` with a success status.

        Raises:
            TransportError: If the server is unreachable or answers with a
                non-success status.
        """
        await self._request(Root(), "ping")

    async def reachable(self) -> bool:
        """Return whether the server answers ``HEAD /`` successfully.

        Unlike ping(), transport failures are reported as False.
        """
        try:
            await self.ping()
        except TransportError:
            return False
        return True

    async def list_models(self) -> ModelList:
        """List locally available models (``GET /api/tags``)."""
        return await self._request(ListModels(), "list_models", ModelList)

    async def model_info(self, request: ModelInfoRequest | str) -> ModelInfoResponse:
        """Show modelfile, template, parameters and details of one model.

        Args:
            request: ModelInfoRequest, or a model name.
        """
        if isinstance(request, str):
            request = ModelInfoRequest(name=request)
        return await self._request(ModelInfo(payload=request), "model_info", ModelInfoResponse)

    async def copy_model(self, request: CopyModelRequest) -> None:
        """Create ``request.destination`` as a copy of ``request.source``."""
        await self._request(CopyModel(payload=request), "copy_model")

    async def delete_model(self, request: DeleteModelRequest | str) -> None:
        """Delete a model and its data."""
        if isinstance(request, str):
            request = DeleteModelRequest(name=request)
        await self._request(DeleteModel(payload=request), "delete_model")

    async def pull_model(self, request: PullModelRequest | str) -> PullModelResponse:
        """Pull a model and return the final status once the download ends.

        Sends ``"stream": false``; the server answers after the pull completes.
        Use pull_model_stream() for progress records.
        """
        if isinstance(request, str):
            request = PullModelRequest(name=request)
        endpoint = PullModel(payload=request.model_copy(update={"stream": False}))
        return await self._request(endpoint, "pull_model", PullModelResponse)

    async def embeddings(self, request: EmbeddingsRequest) -> EmbeddingsResponse:
        """Compute the embedding of ``request.prompt``."""
        return await self._request(Embeddings(payload=request), "embeddings", EmbeddingsResponse)

    # ------------------------------------------------------------------
    # Streaming operations
    # ------------------------------------------------------------------

    def chat(self, request: ChatRequest) -> ResponseStream[ChatResponse]:
        """Stream the next assistant message of a conversation.

        Args:
            request: Chat request. ``stream`` is forced to True.

        Returns:
            Lazy ResponseStream of ChatResponse records. The last record has
            ``done=True`` and carries the performance metrics.

        Raises:
            EncodingError: If the request cannot be serialized.
        """
        endpoint = Chat(payload=request.model_copy(update={"stream": True}))
        return self._stream(endpoint, "chat", ChatResponse)

    def generate(self, request: GenerateRequest) -> ResponseStream[GenerateResponse]:
        """Stream a completion for a prompt.

        Args:
            request: Generate request. ``stream`` is forced to True.

        Returns:
            Lazy ResponseStream of GenerateResponse records.

        Raises:
            EncodingError: If the request cannot be serialized.
        """
        endpoint = Generate(payload=request.model_copy(update={"stream": True}))
        return self._stream(endpoint, "generate", GenerateResponse)

    def pull_model_stream(
        self, request: PullModelRequest | str
    ) -> ResponseStream[PullModelResponse]:
        """Pull a model, streaming one status record per progress update."""
        if isinstance(request, str):
            request = PullModelRequest(name=request)
        endpoint = PullModel(payload=request.model_copy(update={"stream": True}))
        return self._stream(endpoint, "pull_model_stream", PullModelResponse)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @overload
    async def _request(self, endpoint: Endpoint, operation: str) -> None: ...

    @overload
    async def _request(
        self, endpoint: Endpoint, operation: str, response_type: type[ResponseT]
    ) -> ResponseT: ...

    async def _request(
        self,
        endpoint: Endpoint,
        operation: str,
        response_type: type[ResponseT] | None = None,
    ) -> ResponseT | None:
        """Send a one-shot request and decode its body.

        Args:
            endpoint: Endpoint to call.
            operation: Operation name for logs.
            response_type: Model of the response body. None ignores the body.

        Raises:
            EncodingError: If the payload cannot be serialized (nothing sent).
            TransportError: Connection failure or non-success status.
            DecodingError: If the body does not match response_type.
        """
        request = build_request(endpoint, self.config.router_config())
        http_client = self._ensure_client()
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()

        try:
            try:
                response = await http_client.send(request)
            except httpx.HTTPError as exc:
                msg = f"Cannot reach {request.url}: {exc}"
                raise TransportError(msg) from exc

            if not response.is_success:
                raise error_from_response(response)

            result = (
                decode_record(response.content, response_type)
                if response_type is not None
                else None
            )
        except OllamaClientError as exc:
            self._log_request_error(endpoint, operation, request_id, start_time, exc)
            logger.exception("Ollama %s request failed", operation)
            raise

        log_request_event(
            {
                "event": "ollama_request",
                "client_type": "async",
                "operation": operation,
                "status": "success",
                "model": _model_of(endpoint),
                "stream": False,
                "request_id": request_id,
                "latency_ms": _elapsed_ms(start_time),
                "http_status": response.status_code,
            }
        )
        return result

    def _stream(
        self, endpoint: Endpoint, operation: str, record_type: type[ResponseT]
    ) -> ResponseStream[ResponseT]:
        request = build_request(endpoint, self.config.router_config())
        return ResponseStream(lambda: self._iterate(endpoint, request, operation, record_type))

    async def _iterate(
        self,
        endpoint: Endpoint,
        request: httpx.Request,
        operation: str,
        record_type: type[ResponseT],
    ) -> AsyncGenerator[ResponseT, None]:
        """Yield records of one streaming call, logging its outcome."""
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        records = 0
        final: ResponseT | None = None

        try:
            async with aclosing(
                stream_records(self._ensure_client(), request, record_type)
            ) as stream:
                async for record in stream:
                    records += 1
                    if getattr(record, "done", False):
                        final = record
                    yield record
        except OllamaClientError as exc:
            self._log_request_error(
                endpoint, operation, request_id, start_time, exc, records=records
            )
            logger.exception("Ollama %s stream failed after %s records", operation, records)
            raise

        event: dict[str, Any] = {
            "event": "ollama_request",
            "client_type": "async",
            "operation": operation,
            "status": "success",
            "model": _model_of(endpoint),
            "stream": True,
            "request_id": request_id,
            "latency_ms": _elapsed_ms(start_time),
            "records": records,
        }
        if final is not None:
            event.update(_completion_metrics(final))
        log_request_event(event)

    def _log_request_error(
        self,
        endpoint: Endpoint,
        operation: str,
        request_id: str,
        start_time: float,
        exc: OllamaClientError,
        records: int | None = None,
    ) -> None:
        """Log a failed call with consistent format."""
        log_data: dict[str, Any] = {
            "event": "ollama_request",
            "client_type": "async",
            "operation": operation,
            "status": "error",
            "model": _model_of(endpoint),
            "stream": records is not None,
            "request_id": request_id,
            "latency_ms": _elapsed_ms(start_time),
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        }
        if isinstance(exc, TransportError) and exc.status_code is not None:
            log_data["http_status"] = exc.status_code
        if records is not None:
            log_data["records"] = records
        log_request_event(log_data)


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 3)


def _model_of(endpoint: Endpoint) -> str | None:
    payload = endpoint.body()
    return getattr(payload, "model", None) or getattr(payload, "name", None)


def _completion_metrics(record: BaseModel) -> dict[str, Any]:
    """Extract timing and token counts from a final streamed record."""
    load_duration = getattr(record, "load_duration", None) or 0
    total_duration = getattr(record, "total_duration", None) or 0
    return {
        "done_reason": getattr(record, "done_reason", None),
        "total_duration_ms": round(total_duration / 1_000_000, 3) if total_duration else None,
        "model_load_ms": round(load_duration / 1_000_000, 3) if load_duration else 0.0,
        "model_warm_start": load_duration == 0,
        "prompt_eval_count": getattr(record, "prompt_eval_count", None),
        "generation_eval_count": getattr(record, "eval_count", None),
    }


__all__ = ["AsyncOllamaClient", "AsyncOllamaConfig"]
