"""Streaming request engine for newline-delimited JSON generation endpoints.

A :class:`GenerationStream` issues one HTTP request on a background worker
thread. The worker reads the response body incrementally, decodes every line as
a JSON document, extracts the configured output field and hands each chunk to
the consumer through a bounded queue. The consumer iterates the stream; closing
it (explicitly, through ``with``, or by dropping the last reference) cancels the
worker and closes the connection.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from lexido.bridge.config import BridgeConfig
from lexido.bridge.json_tree import JsonValue, extract, substitute
from lexido.config_validation import require_positive_int
from lexido.errors import PayloadSerializationError, TransportError

logger = logging.getLogger(__name__)

PROMPT_PLACEHOLDER = "<PROMPT>"
DEFAULT_QUEUE_SIZE = 16
DEFAULT_TIMEOUT_SECONDS = 120.0
_PUT_POLL_SECONDS = 0.1
_JOIN_TIMEOUT_SECONDS = 2.0


class StreamState(str, Enum):
    """Lifecycle status of a generation stream."""

    pending = "pending"
    sending = "sending"
    streaming = "streaming"
    done = "done"
    failed = "failed"


@dataclass(frozen=True)
class StreamRequest:
    """Fully resolved HTTP exchange whose response is read line by line."""

    url: str
    payload: JsonValue
    output_field: str
    headers: dict[str, str] = field(default_factory=dict)
    method: str = "POST"
    timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS
    stop_field: str | None = None
    error_field: str | None = None


def build_bridge_request(config: BridgeConfig, prompt: str) -> StreamRequest:
    """Substitute the prompt into the configured template and build a request."""
    return StreamRequest(
        url=config.url,
        payload=substitute(config.data_template, PROMPT_PLACEHOLDER, prompt),
        output_field=config.field_to_extract,
        headers=dict(config.headers),
    )


def encode_payload(payload: JsonValue) -> bytes:
    """Serialize a request payload to JSON bytes."""
    try:
        return json.dumps(payload, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PayloadSerializationError(f"Request body is not serializable: {exc}") from exc


def split_lines(chunks: Iterator[bytes]) -> Iterator[bytes]:
    """Re-split a byte stream on ASCII newlines, keeping a trailing partial line."""
    buffer = bytearray()
    for chunk in chunks:
        buffer += chunk
        start = 0
        while True:
            index = buffer.find(b"\n", start)
            if index < 0:
                break
            yield bytes(buffer[start:index])
            start = index + 1
        del buffer[:start]
    if buffer:
        yield bytes(buffer)


@dataclass(frozen=True)
class _Failure:
    error: BaseException


_END = object()


class _Channel:
    """State shared between one stream and its worker thread."""

    def __init__(self, queue_size: int) -> None:
        self.items: queue.Queue[Any] = queue.Queue(maxsize=queue_size)
        self.cancelled = threading.Event()
        self.response: httpx.Response | None = None
        self._state = StreamState.pending
        self._lock = threading.Lock()

    @property
    def state(self) -> StreamState:
        with self._lock:
            return self._state

    def transition(self, state: StreamState) -> None:
        with self._lock:
            if self._state in (StreamState.done, StreamState.failed):
                return
            self._state = state

    def put(self, item: Any) -> bool:
        """Block until the item is queued; return False once cancelled."""
        while not self.cancelled.is_set():
            try:
                self.items.put(item, timeout=_PUT_POLL_SECONDS)
            except queue.Full:
                continue
            return True
        return False

    def drain(self) -> None:
        while True:
            try:
                self.items.get_nowait()
            except queue.Empty:
                return


def _decode_line(raw: bytes, request: StreamRequest) -> tuple[str | None, bool]:
    """Return the chunk carried by one response line and whether it is the last.

    Undecodable lines are logged and produce no chunk.
    """
    text = raw.strip()
    if not text:
        return None, False
    try:
        document = json.loads(text)
    except ValueError as exc:
        logger.warning("Skipping undecodable response line from %s: %s", request.url, exc)
        return None, False

    if request.error_field and isinstance(document, dict) and request.error_field in document:
        raise TransportError(f"{request.url} reported an error: {document[request.error_field]}")

    chunk = extract(document, request.output_field)
    if chunk is None:
        logger.debug("Field %r not present in response line", request.output_field)
    last = bool(
        request.stop_field
        and isinstance(document, dict)
        and document.get(request.stop_field) is True
    )
    return chunk, last


def _produce(
    channel: _Channel,
    request: StreamRequest,
    body: bytes,
    client: httpx.Client | None,
) -> None:
    """Worker body: perform the request and feed chunks into the channel."""
    http = client or httpx.Client(timeout=request.timeout_seconds)
    emitted = 0
    try:
        channel.transition(StreamState.sending)
        logger.debug("Sending %s %s (%d bytes)", request.method, request.url, len(body))
        with http.stream(
            request.method,
            request.url,
            content=body,
            headers=request.headers,
        ) as response:
            channel.response = response
            if response.is_error:
                raise TransportError(
                    f"{request.url} returned HTTP {response.status_code} {response.reason_phrase}"
                )
            channel.transition(StreamState.streaming)
            for line in split_lines(response.iter_bytes()):
                if channel.cancelled.is_set():
                    break
                chunk, last = _decode_line(line, request)
                if chunk:
                    if not channel.put(chunk):
                        break
                    emitted += 1
                if last:
                    break
    except Exception as exc:
        if channel.cancelled.is_set():
            logger.debug("Stream to %s cancelled: %s", request.url, exc)
            channel.transition(StreamState.done)
            return
        if isinstance(exc, (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError)):
            exc = TransportError(f"Request to {request.url} failed: {exc}")
        logger.error("Stream from %s failed after %d chunks: %s", request.url, emitted, exc)
        channel.transition(StreamState.failed)
        channel.put(_Failure(exc))
        return
    finally:
        channel.response = None
        if client is None:
            http.close()

    logger.info("Stream from %s finished with %d chunks", request.url, emitted)
    channel.transition(StreamState.done)
    channel.put(_END)


class GenerationStream:
    """Lazy, single-use iterator over text chunks of one HTTP exchange.

    The request body is serialized up front so encoding problems surface before
    any network I/O. The worker thread is started on the first ``next()`` call.
    Chunks arrive in response order; a transport failure is raised from
    ``next()`` after every chunk extracted before it has been delivered.
    """

    def __init__(
        self,
        request: StreamRequest,
        *,
        client: httpx.Client | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        require_positive_int(queue_size, "queue_size")
        self._request = request
        self._body = encode_payload(request.payload)
        self._client = client
        self._channel = _Channel(queue_size)
        self._worker: threading.Thread | None = None
        self._finished = False

    @property
    def request(self) -> StreamRequest:
        """Return the request this stream performs."""
        return self._request

    @property
    def body(self) -> bytes:
        """Return the serialized request body."""
        return self._body

    @property
    def state(self) -> StreamState:
        """Return the current lifecycle state."""
        return self._channel.state

    def __iter__(self) -> GenerationStream:
        return self

    def __next__(self) -> str:
        if self._finished:
            raise StopIteration
        self._start()
        item = self._channel.items.get()
        if item is _END:
            self._finish()
            raise StopIteration
        if isinstance(item, _Failure):
            self._finish()
            raise item.error
        return item

    def __enter__(self) -> GenerationStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        channel = getattr(self, "_channel", None)
        if channel is not None:
            channel.cancelled.set()

    def close(self) -> None:
        """Cancel the worker, close the connection and release resources."""
        self._finished = True
        channel = self._channel
        worker = self._worker
        if worker is None or not worker.is_alive():
            return
        channel.cancelled.set()
        response = channel.response
        if response is not None:
            response.close()
        channel.drain()
        if worker is not threading.current_thread():
            worker.join(timeout=_JOIN_TIMEOUT_SECONDS)
            if worker.is_alive():
                logger.warning("Stream worker for %s did not stop in time", self._request.url)
        # Wake a consumer still blocked in next() on another thread.
        try:
            channel.items.put_nowait(_END)
        except queue.Full:
            pass

    def _start(self) -> None:
        if self._worker is not None:
            return
        self._worker = threading.Thread(
            target=_produce,
            args=(self._channel, self._request, self._body, self._client),
            name="lexido-stream",
            daemon=True,
        )
        self._worker.start()

    def _finish(self) -> None:
        self._finished = True
        if self._worker is not None:
            self._worker.join(timeout=_JOIN_TIMEOUT_SECONDS)


def stream_generate(
    config: BridgeConfig,
    prompt: str,
    *,
    client: httpx.Client | None = None,
    queue_size: int = DEFAULT_QUEUE_SIZE,
) -> GenerationStream:
    """Build the bridge request for ``prompt`` and return its chunk stream."""
    return GenerationStream(
        build_bridge_request(config, prompt),
        client=client,
        queue_size=queue_size,
    )
