"""Endpoint descriptors for the Ollama REST API.

The API surface is a closed set of nine operations. Each operation is a frozen
dataclass; operations that send a body carry it as ``payload``. The path, HTTP
method and body requirement are class-level constants, so resolving a route is
a pure attribute lookup.

Example:
    path, method, requires_body = Chat(payload=chat_request).route
    # ("/api/chat", HTTPMethod.POST, True)
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPMethod
from typing import ClassVar, NamedTuple

from pydantic import BaseModel

from ollama_async.api.models import (
    ChatRequest,
    CopyModelRequest,
    DeleteModelRequest,
    EmbeddingsRequest,
    GenerateRequest,
    ModelInfoRequest,
    PullModelRequest,
)


class Route(NamedTuple):
    """Resolved location of an endpoint."""

    path: str
    method: HTTPMethod
    requires_body: bool


class Endpoint:
    """Base class of all endpoint variants."""

    __slots__ = ()

    path: ClassVar[str]
    method: ClassVar[HTTPMethod]
    requires_body: ClassVar[bool] = True

    @property
    def route(self) -> Route:
        return Route(self.path, self.method, self.requires_body)

    def body(self) -> BaseModel | None:
        """Return the request payload, or None for bodiless endpoints."""
        return getattr(self, "payload", None)


@dataclass(slots=True, frozen=True)
class Root(Endpoint):
    """Reachability check of the server root."""

    path: ClassVar[str] = "/"
    method: ClassVar[HTTPMethod] = HTTPMethod.HEAD
    requires_body: ClassVar[bool] = False


@dataclass(slots=True, frozen=True)
class ListModels(Endpoint):
    """List locally available models."""

    path: ClassVar[str] = "/api/tags"
    method: ClassVar[HTTPMethod] = HTTPMethod.GET
    requires_body: ClassVar[bool] = False


@dataclass(slots=True, frozen=True)
class ModelInfo(Endpoint):
    """Show details of one model."""

    path: ClassVar[str] = "/api/show"
    method: ClassVar[HTTPMethod] = HTTPMethod.POST

    payload: ModelInfoRequest


@dataclass(slots=True, frozen=True)
class Generate(Endpoint):
    """Generate a completion for a prompt."""

    path: ClassVar[str] = "/api/generate"
    method: ClassVar[HTTPMethod] = HTTPMethod.POST

    payload: GenerateRequest


@dataclass(slots=True, frozen=True)
class Chat(Endpoint):
    """Generate the next message of a conversation."""

    path: ClassVar[str] = "/api/chat"
    method: ClassVar[HTTPMethod] = HTTPMethod.POST

    payload: ChatRequest


@dataclass(slots=True, frozen=True)
class CopyModel(Endpoint):
    path: ClassVar[str] = "/api/copy"
    method: ClassVar[HTTPMethod] = HTTPMethod.POST

    payload: CopyModelRequest


@dataclass(slots=True, frozen=True)
class DeleteModel(Endpoint):
    path: ClassVar[str] = "/api/delete"
    method: ClassVar[HTTPMethod] = HTTPMethod.DELETE

    payload: DeleteModelRequest


@dataclass(slots=True, frozen=True)
class PullModel(Endpoint):
    """Download a model from the registry."""

    path: ClassVar[str] = "/api/pull"
    method: ClassVar[HTTPMethod] = HTTPMethod.POST

    payload: PullModelRequest


@dataclass(slots=True, frozen=True)
class Embeddings(Endpoint):
    path: ClassVar[str] = "/api/embeddings"
    method: ClassVar[HTTPMethod] = HTTPMethod.POST

    payload: EmbeddingsRequest


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
]
