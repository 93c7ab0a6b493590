"""Generation backend implementations and one-time backend selection."""

from __future__ import annotations

from pathlib import Path

from lexido.config_validation import validate_backend_mode
from lexido.providers.base import GenerationBackend
from lexido.providers.bridge_provider import BridgeProvider
from lexido.providers.mock_provider import MockProvider
from lexido.providers.ollama_provider import DEFAULT_OLLAMA_MODEL, OllamaProvider
from lexido.providers.openai_provider import DEFAULT_OPENAI_MODEL, OpenAIProvider


def create_backend(
    name: str,
    *,
    model: str | None = None,
    queue_size: int = 16,
    config_path: Path | None = None,
    mock_responses: list[list[str]] | None = None,
) -> GenerationBackend:
    """Create exactly one generation backend by name."""
    mode = validate_backend_mode(name)
    if mode == "openai":
        return OpenAIProvider(model=model or DEFAULT_OPENAI_MODEL)
    if mode == "ollama":
        return OllamaProvider(model=model or DEFAULT_OLLAMA_MODEL, queue_size=queue_size)
    if mode == "bridge":
        return BridgeProvider(config_path, queue_size=queue_size)
    if mock_responses is None:
        raise ValueError("mock responses are required when backend=mock.")
    return MockProvider(mock_responses)


__all__ = [
    "BridgeProvider",
    "GenerationBackend",
    "MockProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "create_backend",
]
