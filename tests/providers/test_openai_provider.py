"""Tests for the OpenAI streaming backend using a fake SDK client."""

from __future__ import annotations

from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from openai import APIConnectionError

from lexido.errors import BackendSetupError, ContentBlockedError, TransportError
from lexido.providers.openai_provider import OpenAIProvider


def _event(content: str | None, finish_reason: str | None = None) -> SimpleNamespace:
    choice = SimpleNamespace(delta=SimpleNamespace(content=content), finish_reason=finish_reason)
    return SimpleNamespace(choices=[choice])


class _FakeStream:
    def __init__(self, events: list[SimpleNamespace]) -> None:
        self._events = events
        self.closed = False

    def __enter__(self) -> _FakeStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    def __iter__(self) -> Iterator[SimpleNamespace]:
        return iter(self._events)


class _FakeClient:
    def __init__(self, events: list[SimpleNamespace] | None = None, error: Exception | None = None):
        self.calls: list[dict[str, Any]] = []
        self.stream = _FakeStream(events or [])
        self._error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: Any) -> _FakeStream:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self.stream


def test_stream_generate_yields_deltas_lazily() -> None:
    client = _FakeClient([_event("Hel"), SimpleNamespace(choices=[]), _event(None), _event("lo")])
    provider = OpenAIProvider(model="gpt-test", client=client)  # type: ignore[arg-type]

    chunks = provider.stream_generate("question")
    assert client.calls == []

    assert list(chunks) == ["Hel", "lo"]
    assert client.calls[0]["stream"] is True
    assert client.calls[0]["model"] == "gpt-test"
    assert client.calls[0]["messages"] == [{"role": "user", "content": "question"}]
    assert client.calls[0]["max_completion_tokens"] == 2000
    assert client.stream.closed


def test_content_filter_raises_blocked_error() -> None:
    client = _FakeClient([_event("partial"), _event(None, finish_reason="content_filter")])
    provider = OpenAIProvider(client=client)  # type: ignore[arg-type]
    received: list[str] = []

    with pytest.raises(ContentBlockedError):
        for chunk in provider.stream_generate("q"):
            received.append(chunk)

    assert received == ["partial"]


def test_connection_error_is_wrapped() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    client = _FakeClient(error=APIConnectionError(request=request))
    provider = OpenAIProvider(client=client)  # type: ignore[arg-type]

    with pytest.raises(TransportError):
        list(provider.stream_generate("q"))


def test_missing_api_key_is_setup_error(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(BackendSetupError, match="OPENAI_API_KEY"):
        OpenAIProvider()
