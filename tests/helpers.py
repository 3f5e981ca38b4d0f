"""Reusable test utilities for streaming tests.

Instrumented httpx byte streams let tests observe exactly when the transport
delivers each chunk and when the connection is closed.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterable

import httpx

from ollama_async.api.endpoints import Chat
from ollama_async.api.models import ChatRequest, Message, Role
from ollama_async.api.router import RouterConfig, build_request


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered chunk by chunk, recording every step.

    Attributes:
        events: Shared event log; ("sent", index) is appended per chunk.
        sent: Number of chunks handed to the client.
        closed: Whether the client closed the stream.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        events: list | None = None,
        gate: asyncio.Event | None = None,
        gate_after: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self.events = events if events is not None else []
        self.gate = gate
        self.gate_after = gate_after
        self.error = error
        self.sent = 0
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for index, chunk in enumerate(self.chunks):
            if self.gate is not None and index == self.gate_after:
                await self.gate.wait()
            await asyncio.sleep(0)
            self.sent += 1
            self.events.append(("sent", index))
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


def streaming_transport(
    stream: httpx.AsyncByteStream, status_code: int = 200
) -> httpx.MockTransport:
    """Transport answering every request with ``stream`` as the body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            headers={"Content-Type": "application/x-ndjson"},
            stream=stream,
        )

    return httpx.MockTransport(handler)


def recording_transport(
    respond: Callable[[httpx.Request], httpx.Response], seen: list[httpx.Request]
) -> httpx.MockTransport:
    """Transport recording every request it receives."""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return respond(request)

    return httpx.MockTransport(handler)


def chat_request(content: str = "Hello") -> ChatRequest:
    return ChatRequest(
        model="llama3.2",
        messages=[Message(role=Role.USER, content=content)],
    )


def prepared_chat_request(base_url: str = "http://ollama.test") -> httpx.Request:
    return build_request(Chat(payload=chat_request()), RouterConfig(base_url=base_url))
