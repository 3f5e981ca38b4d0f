"""Wire models, endpoint descriptors and request building for the Ollama API."""

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
    Route,
)
from ollama_async.api.router import RouterConfig, build_request, encode_payload

__all__ = [
    "Chat",
    "CopyModel",
    "DeleteModel",
    "Embeddings",
    "Endpoint",
    "Generate",
    "ListModels",
    "ModelInfo",
    "PullModel",
    "Root",
    "Route",
    "RouterConfig",
    "build_request",
    "encode_payload",
]
