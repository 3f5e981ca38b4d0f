"""Streaming decoder for newline-delimited JSON response bodies.

The server answers chat and generate requests (and streamed pulls) with one
JSON object per line, flushed as soon as each object is produced. This module
turns such a body into an ordered sequence of typed records and offers it in
two consumption styles backed by the same decoding generator:

    - Pull: ``ResponseStream`` is an async iterator; ``async for`` suspends
      between records.
    - Push: ``ResponseStream.subscribe()`` drains the same iterator in a task
      and invokes callbacks as records arrive.

Key behaviors:
    - Each record is yielded as soon as its terminating newline arrives;
      records are never batched or reordered
    - Blank lines are skipped
    - The first undecodable line ends the stream with DecodingError
    - A non-success status ends the stream with TransportError before any
      record is decoded; the body is read as a single error descriptor
    - A record with ``done=True`` does not end the stream early; the body is
      drained until the server closes it

Concurrency:
    - One producer (the HTTP body) and one consumer per stream
    - Push callbacks run on the event loop thread, inside the subscription task

Resource handling:
    - The HTTP response is closed on every exit path: end of body, error, or
      the consumer stopping early (``aclose()``, leaving ``async with``,
      cancelling a subscription)
"""

from __future__ import annotations

import asyncio
import types
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import aclosing
from typing import Generic, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ollama_async.api.models import ErrorResponse
from ollama_async.domain.exceptions import DecodingError, OllamaClientError, TransportError

RecordT = TypeVar("RecordT", bound=BaseModel)

LINE_TERMINATOR = b"\n"


async def iter_lines(chunks: AsyncIterator[bytes]) -> AsyncGenerator[bytes, None]:
    """Split a byte stream into lines as soon as each line is complete.

    Args:
        chunks: Body chunks in arrival order, split at arbitrary boundaries.

    Yields:
        Lines without their terminating newline. A trailing fragment without
        a newline is yielded when the body ends.
    """
    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
        while (index := buffer.find(LINE_TERMINATOR)) >= 0:
            line = bytes(buffer[:index])
            del buffer[: index + 1]
            yield line
    if buffer:
        yield bytes(buffer)


def decode_record(line: bytes, record_type: type[RecordT]) -> RecordT:
    """Decode one JSON document into ``record_type``.

    Raises:
        DecodingError: If the line is not valid JSON or does not match the
            record's shape.
    """
    try:
        return record_type.model_validate_json(line)
    except ValidationError as exc:
        snippet = line[:200].decode("utf-8", errors="replace")
        msg = f"Cannot decode {record_type.__name__} from {snippet!r}"
        raise DecodingError(msg) from exc


async def decode_records(
    chunks: AsyncIterator[bytes], record_type: type[RecordT]
) -> AsyncGenerator[RecordT, None]:
    """Decode a newline-delimited JSON byte stream into records.

    Yields:
        One record per non-blank line, in arrival order.

    Raises:
        DecodingError: On the first line that cannot be decoded. Lines after
            it are not read.
    """
    async with aclosing(iter_lines(chunks)) as lines:
        async for line in lines:
            if not line.strip():
                continue
            yield decode_record(line, record_type)


def error_from_response(response: httpx.Response) -> TransportError:
    """Build a TransportError from a non-success response.

    The body must already be read. The server's ``{"error": "..."}``
    descriptor is preferred; otherwise the body text, then the reason phrase.
    """
    try:
        detail = ErrorResponse.model_validate_json(response.content).error
    except ValidationError:
        detail = response.text.strip() or response.reason_phrase
    return TransportError(detail, status_code=response.status_code)


async def _read_body(response: httpx.Response) -> AsyncGenerator[bytes, None]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as exc:
        msg = f"Connection failed while streaming {response.request.url}: {exc}"
        raise TransportError(msg) from exc


async def stream_records(
    http_client: httpx.AsyncClient,
    request: httpx.Request,
    record_type: type[RecordT],
) -> AsyncGenerator[RecordT, None]:
    """Send ``request`` and yield decoded records as the body arrives.

    Args:
        http_client: Transport used to send the request.
        request: Prepared request (see ``ollama_async.api.router``).
        record_type: Pydantic model of one streamed record.

    Yields:
        Records in the order their lines were received.

    Raises:
        TransportError: Connection failure, timeout, or non-success status.
        DecodingError: A non-blank line that is not a valid record.
    """
    try:
        response = await http_client.send(request, stream=True)
    except httpx.HTTPError as exc:
        msg = f"Cannot reach {request.url}: {exc}"
        raise TransportError(msg) from exc

    try:
        if not response.is_success:
            try:
                await response.aread()
            except httpx.HTTPError as exc:
                raise TransportError(
                    response.reason_phrase, status_code=response.status_code
                ) from exc
            raise error_from_response(response)

        async with (
            aclosing(_read_body(response)) as body,
            aclosing(decode_records(body, record_type)) as records,
        ):
            async for record in records:
                yield record
    finally:
        await response.aclose()


class ResponseStream(Generic[RecordT]):
    """Lazy, single-use stream of response records.

    Nothing is sent until the first record is requested. The stream can be
    consumed either by iteration (pull) or through ``subscribe()`` (push),
    but not both.

    Example:
        async with client.chat(request) as stream:
            async for part in stream:
                print(part.message.content, end="")

    Leaving the ``async with`` block (or calling ``aclose()``) closes the
    connection immediately, even if the body has not been fully received.
    """

    __slots__ = ("_claimed", "_closed", "_factory", "_iterator")

    def __init__(self, factory: Callable[[], AsyncGenerator[RecordT, None]]) -> None:
        self._factory = factory
        self._iterator: AsyncGenerator[RecordT, None] | None = None
        self._closed = False
        self._claimed = False

    def __aiter__(self) -> ResponseStream[RecordT]:
        return self

    async def __anext__(self) -> RecordT:
        if self._claimed:
            raise RuntimeError("ResponseStream is already consumed by a subscription")
        if self._closed:
            raise StopAsyncIteration
        if self._iterator is None:
            self._iterator = self._factory()
        return await anext(self._iterator)

    async def aclose(self) -> None:
        """Stop the stream and release the connection. Idempotent."""
        self._closed = True
        if self._iterator is not None:
            await self._iterator.aclose()

    async def __aenter__(self) -> ResponseStream[RecordT]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()

    def subscribe(
        self,
        on_next: Callable[[RecordT], None],
        on_error: Callable[[OllamaClientError], None] | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> Subscription:
        """Push records to callbacks as they arrive.

        Must be called from a running event loop. Returns immediately; the
        stream is drained by a task on the current loop, and every callback
        runs on the loop thread inside that task. Once subscribed, the stream
        can no longer be iterated.

        Args:
            on_next: Called once per record, in order.
            on_error: Called once with the terminal error, if the stream fails.
                Without it, the error is raised from Subscription.wait().
            on_completed: Called once when the body ends normally.

        Returns:
            Subscription controlling the draining task.

        Raises:
            RuntimeError: If the stream was already consumed or no event loop
                is running.
        """
        if self._claimed or self._iterator is not None or self._closed:
            raise RuntimeError("ResponseStream can only be consumed once")
        loop = asyncio.get_running_loop()
        self._claimed = True
        self._iterator = self._factory()
        task = loop.create_task(_drain(self._iterator, on_next, on_error, on_completed))
        return Subscription(task)


async def _drain(
    records: AsyncGenerator[RecordT, None],
    on_next: Callable[[RecordT], None],
    on_error: Callable[[OllamaClientError], None] | None,
    on_completed: Callable[[], None] | None,
) -> None:
    try:
        async with aclosing(records):
            async for record in records:
                on_next(record)
    except OllamaClientError as exc:
        if on_error is None:
            raise
        on_error(exc)
        return
    if on_completed is not None:
        on_completed()


class Subscription:
    """Handle of a push-based stream consumption.

    Attributes:
        task: asyncio task draining the stream.
    """

    __slots__ = ("task",)

    def __init__(self, task: asyncio.Task[None]) -> None:
        self.task = task

    @property
    def done(self) -> bool:
        return self.task.done()

    def cancel(self) -> None:
        """Request teardown without waiting for it."""
        self.task.cancel()

    async def dispose(self) -> None:
        """Cancel the subscription and wait until the connection is closed.

        Neither ``on_error`` nor ``on_completed`` is called for a disposed
        subscription that had not finished yet.
        """
        self.task.cancel()
        await asyncio.wait([self.task])

    async def wait(self) -> None:
        """Wait for the stream to finish.

        Raises:
            Exception: Whatever a callback raised.
            asyncio.CancelledError: If the subscription was cancelled.
        """
        await self.task


__all__ = [
    "ResponseStream",
    "Subscription",
    "decode_record",
    "decode_records",
    "error_from_response",
    "iter_lines",
    "stream_records",
]
