"""Request and response models for the Ollama REST API.

This module defines Pydantic v2 models for every payload the client sends and
every record it decodes. Field names match the Ollama wire format directly
(snake_case), so models serialize without aliases.

Design Principles:
    - Immutability: All models are frozen (``frozen=True``)
    - Request models reject unknown fields (``extra="forbid"``)
    - Response models keep unknown fields (``extra="allow"``) so newer server
      versions do not break decoding
    - Optional fields default to None and are omitted on the wire

Key Models:
    - Request Models: ChatRequest, GenerateRequest, ModelInfoRequest,
      CopyModelRequest, DeleteModelRequest, PullModelRequest, EmbeddingsRequest
    - Response Models: ChatResponse, GenerateResponse, ModelList,
      ModelInfoResponse, PullModelResponse, EmbeddingsResponse
    - Error Model: ErrorResponse (error descriptor of non-success responses)
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_REQUEST_CONFIG = ConfigDict(frozen=True, extra="forbid")
_RESPONSE_CONFIG = ConfigDict(frozen=True, extra="allow")


class Role(StrEnum):
    """Role of a chat message author."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


# ============================================================================
# Shared Models
# ============================================================================


class CompletionOptions(BaseModel):
    """Model parameters for generation, chat and embeddings.

    All fields are optional; unset fields are left to the model's defaults
    and are not sent.
    """

    model_config = _REQUEST_CONFIG

    mirostat: int | None = None
    mirostat_eta: float | None = None
    mirostat_tau: float | None = None
    num_ctx: int | None = None
    repeat_last_n: int | None = None
    repeat_penalty: float | None = None
    temperature: float | None = None
    seed: int | None = None
    stop: list[str] | None = None
    tfs_z: float | None = None
    num_predict: int | None = None
    top_k: int | None = None
    top_p: float | None = None
    min_p: float | None = None


class ToolCallFunction(BaseModel):
    """Function invocation requested by the model."""

    model_config = _RESPONSE_CONFIG

    name: str | None = None
    arguments: dict[str, Any] | None = None


class ToolCall(BaseModel):
    """Tool call attached to an assistant message."""

    model_config = _RESPONSE_CONFIG

    function: ToolCallFunction | None = None


class Message(BaseModel):
    """A single chat message.

    Used both in requests (conversation history) and in streamed chat
    responses, where each record carries the next fragment of the assistant
    message.

    Attributes:
        role: Author of the message.
        content: Message text. Streamed fragments may be empty.
        images: Base64-encoded images for multimodal models.
        tool_calls: Tool calls requested by the model (assistant messages).
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: Role
    content: str = ""
    images: list[str] | None = None
    tool_calls: list[ToolCall] | None = None


# ============================================================================
# Request Models
# ============================================================================


class ChatRequest(BaseModel):
    """Payload for ``POST /api/chat``.

    Attributes:
        model: Model name.
        messages: Ordered conversation history.
        tools: Tool definitions in the OpenAI function format, passed through
            as JSON objects.
        format: ``"json"`` or a JSON schema dict for structured output.
        options: Model parameters.
        keep_alive: How long the model stays loaded after the request.
        stream: Whether the server streams the response. The client forces
            this to True for streaming calls.
    """

    model_config = _REQUEST_CONFIG

    model: str = Field(..., min_length=1)
    messages: list[Message]
    tools: list[dict[str, Any]] | None = None
    format: str | dict[str, Any] | None = None
    options: CompletionOptions | None = None
    keep_alive: str | int | None = None
    stream: bool = True


class GenerateRequest(BaseModel):
    """Payload for ``POST /api/generate``."""

    model_config = _REQUEST_CONFIG

    model: str = Field(..., min_length=1)
    prompt: str
    suffix: str | None = None
    images: list[str] | None = None
    system: str | None = None
    template: str | None = None
    context: list[int] | None = None
    format: str | dict[str, Any] | None = None
    raw: bool | None = None
    options: CompletionOptions | None = None
    keep_alive: str | int | None = None
    stream: bool = True


class ModelInfoRequest(BaseModel):
    """Payload for ``POST /api/show``."""

    model_config = _REQUEST_CONFIG

    name: str = Field(..., min_length=1)


class CopyModelRequest(BaseModel):
    """Payload for ``POST /api/copy``."""

    model_config = _REQUEST_CONFIG

    source: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)


class DeleteModelRequest(BaseModel):
    """Payload for ``DELETE /api/delete``."""

    model_config = _REQUEST_CONFIG

    name: str = Field(..., min_length=1)


class PullModelRequest(BaseModel):
    """Payload for ``POST /api/pull``.

    ``stream`` defaults to False so the one-shot pull returns a single status
    object; the progress stream sets it to True.
    """

    model_config = _REQUEST_CONFIG

    name: str = Field(..., min_length=1)
    insecure: bool | None = None
    stream: bool = False


class EmbeddingsRequest(BaseModel):
    """Payload for ``POST /api/embeddings``."""

    model_config = _REQUEST_CONFIG

    model: str = Field(..., min_length=1)
    prompt: str
    options: CompletionOptions | None = None
    keep_alive: str | int | None = None


# ============================================================================
# Response Models
# ============================================================================


class _CompletionMetrics(BaseModel):
    """Performance counters reported on the final streamed record.

    All durations are in nanoseconds.
    """

    model_config = _RESPONSE_CONFIG

    done: bool = False
    done_reason: str | None = None
    total_duration: int | None = None
    load_duration: int | None = None
    prompt_eval_count: int | None = None
    prompt_eval_duration: int | None = None
    eval_count: int | None = None
    eval_duration: int | None = None


class ChatResponse(_CompletionMetrics):
    """One record of a chat response stream.

    Attributes:
        model: Model that produced the record.
        created_at: Server timestamp (RFC 3339 with nanoseconds, kept as text).
        message: Next fragment of the assistant message. Absent on some
            final records.
        done: True on the last record of the response.
    """

    model: str | None = None
    created_at: str | None = None
    message: Message | None = None


class GenerateResponse(_CompletionMetrics):
    """One record of a generate response stream."""

    model: str | None = None
    created_at: str | None = None
    response: str = ""
    context: list[int] | None = None


class ModelDetails(BaseModel):
    """Format and family details of a local model."""

    model_config = _RESPONSE_CONFIG

    parent_model: str | None = None
    format: str | None = None
    family: str | None = None
    families: list[str] | None = None
    parameter_size: str | None = None
    quantization_level: str | None = None


class ModelSummary(BaseModel):
    """Entry of the local model list."""

    model_config = _RESPONSE_CONFIG

    name: str
    model: str | None = None
    modified_at: str | None = None
    size: int | None = None
    digest: str | None = None
    details: ModelDetails | None = None


class ModelList(BaseModel):
    """Response of ``GET /api/tags``."""

    model_config = _RESPONSE_CONFIG

    models: list[ModelSummary] = Field(default_factory=list)


class ModelInfoResponse(BaseModel):
    """Response of ``POST /api/show``."""

    model_config = ConfigDict(frozen=True, extra="allow", protected_namespaces=())

    modelfile: str | None = None
    parameters: str | None = None
    template: str | None = None
    system: str | None = None
    license: str | None = None
    details: ModelDetails | None = None
    model_info: dict[str, Any] | None = None


class PullModelResponse(BaseModel):
    """Status of a model pull, or one progress record of a pull stream."""

    model_config = _RESPONSE_CONFIG

    status: str
    digest: str | None = None
    total: int | None = None
    completed: int | None = None


class EmbeddingsResponse(BaseModel):
    """Response of ``POST /api/embeddings``."""

    model_config = _RESPONSE_CONFIG

    embedding: list[float]


class ErrorResponse(BaseModel):
    """Error descriptor returned with non-success statuses."""

    model_config = _RESPONSE_CONFIG

    error: str


__all__ = [
    "ChatRequest",
    "ChatResponse",
    "CompletionOptions",
    "CopyModelRequest",
    "DeleteModelRequest",
    "EmbeddingsRequest",
    "EmbeddingsResponse",
    "ErrorResponse",
    "GenerateRequest",
    "GenerateResponse",
    "Message",
    "ModelDetails",
    "ModelInfoRequest",
    "ModelInfoResponse",
    "ModelList",
    "ModelSummary",
    "PullModelRequest",
    "PullModelResponse",
    "Role",
    "ToolCall",
    "ToolCallFunction",
]
