"""Async Ollama client: typed models, streaming decoder and client facade."""

from ollama_async.api.models import (
    ChatRequest,
    ChatResponse,
    CompletionOptions,
    CopyModelRequest,
    DeleteModelRequest,
    EmbeddingsRequest,
    EmbeddingsResponse,
    GenerateRequest,
    GenerateResponse,
    Message,
    ModelDetails,
    ModelInfoRequest,
    ModelInfoResponse,
    ModelList,
    ModelSummary,
    PullModelRequest,
    PullModelResponse,
    Role,
    ToolCall,
    ToolCallFunction,
)
from ollama_async.client import AsyncOllamaClient, AsyncOllamaConfig
from ollama_async.core import ClientSettings, ResponseStream, Subscription
from ollama_async.domain import (
    DecodingError,
    EncodingError,
    OllamaClientError,
    TransportError,
)

__all__ = [
    "AsyncOllamaClient",
    "AsyncOllamaConfig",
    "ChatRequest",
    "ChatResponse",
    "ClientSettings",
    "CompletionOptions",
    "CopyModelRequest",
    "DecodingError",
    "DeleteModelRequest",
    "EmbeddingsRequest",
    "EmbeddingsResponse",
    "EncodingError",
    "GenerateRequest",
    "GenerateResponse",
    "Message",
    "ModelDetails",
    "ModelInfoRequest",
    "ModelInfoResponse",
    "ModelList",
    "ModelSummary",
    "OllamaClientError",
    "PullModelRequest",
    "PullModelResponse",
    "ResponseStream",
    "Role",
    "Subscription",
    "ToolCall",
    "ToolCallFunction",
    "TransportError",
]
