"""Request building for the Ollama REST API.

Turns an endpoint descriptor plus a router configuration into a ready-to-send
``httpx.Request``. Pure: no I/O, no state. Serialization failures surface as
EncodingError before anything reaches the network.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import httpx
from pydantic import BaseModel

from ollama_async.api.endpoints import Endpoint
from ollama_async.domain.exceptions import EncodingError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(slots=True, frozen=True)
class RouterConfig:
    """Where and as whom requests are sent.

    Attributes:
        base_url: Server base URL, e.g. "http://localhost:11434". May carry a
            path prefix ("https://proxy.example/ollama").
        auth_token: Bearer token. None or empty sends no Authorization header.
    """

    base_url: str
    auth_token: str | None = None


def encode_payload(payload: BaseModel) -> bytes:
    """Serialize a request payload to compact JSON.

    Fields left at None are omitted. NaN and infinite floats are rejected
    rather than written as invalid JSON.

    Args:
        payload: Request model to serialize.

    Returns:
        UTF-8 encoded JSON document.

    Raises:
        EncodingError: If the payload contains values JSON cannot represent.
    """
    try:
        data = payload.model_dump(exclude_none=True)
        return json.dumps(data, allow_nan=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        msg = f"Cannot encode {type(payload).__name__} as JSON: {exc}"
        raise EncodingError(msg) from exc


def build_url(endpoint: Endpoint, base_url: str) -> httpx.URL:
    """Append the endpoint path to the path of ``base_url``."""
    base = httpx.URL(base_url)
    return base.copy_with(path=base.path.rstrip("/") + endpoint.path)


def build_headers(auth_token: str | None) -> dict[str, str]:
    headers = {"Content-Type": JSON_CONTENT_TYPE}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def build_request(endpoint: Endpoint, config: RouterConfig) -> httpx.Request:
    """Build the HTTP request for an endpoint.

    Args:
        endpoint: Endpoint variant, carrying its payload if it has one.
        config: Base URL and optional bearer token.

    Returns:
        httpx.Request with URL, method, headers and (if any) JSON body set.

    Raises:
        EncodingError: If the payload cannot be serialized.
    """
    payload = endpoint.body()
    content = encode_payload(payload) if payload is not None else None
    request = httpx.Request(
        endpoint.method,
        build_url(endpoint, config.base_url),
        headers=build_headers(config.auth_token),
        content=content,
    )
    logger.debug("Built %s %s (%s bytes)", request.method, request.url, len(content or b""))
    return request


__all__ = ["RouterConfig", "build_headers", "build_request", "build_url", "encode_payload"]
