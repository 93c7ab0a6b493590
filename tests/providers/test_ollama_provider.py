"""Tests for the local Ollama backend."""

from __future__ import annotations

import json

import httpx
import pytest

from lexido.errors import BackendSetupError, TransportError
from lexido.providers.ollama_provider import OllamaProvider, resolve_base_url


def _daemon(models: list[str], lines: list[dict[str, object]]) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": [{"name": name} for name in models]})
        if request.url.path == "/api/generate":
            payload = json.loads(request.content)
            assert payload["stream"] is True
            body = "".join(json.dumps(line) + "\n" for line in lines)
            return httpx.Response(200, content=body.encode("utf-8"))
        return httpx.Response(404)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_stream_generate_yields_response_fields_until_done() -> None:
    client = _daemon(
        ["llama2:latest"],
        [
            {"model": "llama2", "response": "Hel", "done": False},
            {"model": "llama2", "response": "lo", "done": False},
            {"model": "llama2", "response": "", "done": True, "eval_count": 2},
        ],
    )
    provider = OllamaProvider("llama2", "http://daemon:11434", client=client)

    assert list(provider.stream_generate("hi")) == ["Hel", "lo"]


def test_build_request_targets_generate_endpoint() -> None:
    provider = OllamaProvider("mistral", "http://daemon:11434/")

    request = provider.build_request("why?")

    assert request.url == "http://daemon:11434/api/generate"
    assert request.payload == {"model": "mistral", "prompt": "why?", "stream": True}
    assert request.output_field == "response"


def test_ensure_model_accepts_latest_tag() -> None:
    provider = OllamaProvider("llama2", "http://daemon", client=_daemon(["llama2:latest"], []))

    provider.ensure_model()


def test_ensure_model_rejects_missing_model() -> None:
    provider = OllamaProvider("phi3", "http://daemon", client=_daemon(["llama2:latest"], []))

    with pytest.raises(BackendSetupError, match="ollama pull phi3"):
        provider.ensure_model()


def test_ensure_model_reports_unreachable_daemon() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    provider = OllamaProvider("llama2", "http://daemon", client=client)

    with pytest.raises(BackendSetupError, match="Unable to reach Ollama"):
        provider.ensure_model()


def test_error_line_fails_stream() -> None:
    client = _daemon([], [{"error": "model 'x' not found"}])
    provider = OllamaProvider("x", "http://daemon", client=client)

    with pytest.raises(TransportError, match="not found"):
        list(provider.stream_generate("hi"))


def test_resolve_base_url_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("OLLAMA_HOST", "10.0.0.5:11434")

    assert resolve_base_url() == "http://10.0.0.5:11434"
    assert resolve_base_url("https://ollama.local/") == "https://ollama.local"


def test_blank_model_is_rejected() -> None:
    with pytest.raises(BackendSetupError):
        OllamaProvider("  ")


@pytest.mark.parametrize("payload", [[], {"models": ["llama2"]}, {"models": {"name": "llama2"}}])
def test_ensure_model_rejects_unexpected_tags_payload(payload: object) -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
    )
    provider = OllamaProvider("llama2", "http://daemon", client=client)

    with pytest.raises(BackendSetupError, match="Unexpected model"):
        provider.ensure_model()
