"""Tests for the configuration-driven bridge backend."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from lexido.errors import SetupRequiredError
from lexido.providers.bridge_provider import BridgeProvider


def _write_config(path: Path, template: object) -> Path:
    path.write_text(
        json.dumps(
            {
                "api_config": {
                    "url": "http://bridge.test/generate",
                    "headers": {"Authorization": "Bearer token"},
                    "data_template": template,
                    "field_to_extract": "text",
                }
            }
        ),
        encoding="utf-8",
    )
    return path


def test_bridge_rereads_config_for_every_request(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "remote.json", {"input": "<PROMPT>"})
    bodies: list[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, content=b'{"out": {"text": "ok"}}\n')

    client = httpx.Client(transport=httpx.MockTransport(handler))
    provider = BridgeProvider(config_path, client=client)

    assert list(provider.stream_generate("first")) == ["ok"]
    _write_config(config_path, {"messages": [{"content": "<PROMPT>"}]})
    assert list(provider.stream_generate("second")) == ["ok"]

    assert bodies == [{"input": "first"}, {"messages": [{"content": "second"}]}]


def test_bridge_without_config_requires_setup(tmp_path: Path) -> None:
    provider = BridgeProvider(tmp_path / "missing.json")

    with pytest.raises(SetupRequiredError):
        provider.stream_generate("hi")
    assert (tmp_path / "missing.json").exists()
