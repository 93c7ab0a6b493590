"""Local inference backend talking to an Ollama daemon."""

from __future__ import annotations

import logging
import os

import httpx

from lexido.bridge.stream import (
    DEFAULT_QUEUE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    GenerationStream,
    StreamRequest,
)
from lexido.errors import BackendSetupError

logger = logging.getLogger(__name__)

OLLAMA_HOST_ENV = "OLLAMA_HOST"
DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"
DEFAULT_OLLAMA_MODEL = "llama2"


def resolve_base_url(base_url: str | None = None) -> str:
    """Resolve the daemon URL from argument, environment, or default."""
    value = (base_url or os.environ.get(OLLAMA_HOST_ENV) or DEFAULT_OLLAMA_URL).strip()
    if "://" not in value:
        value = f"http://{value}"
    return value.rstrip("/")


class OllamaProvider:
    """Streams completions from ``/api/generate`` of a local Ollama daemon."""

    name = "ollama"

    def __init__(
        self,
        model: str = DEFAULT_OLLAMA_MODEL,
        base_url: str | None = None,
        *,
        client: httpx.Client | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not model.strip():
            raise BackendSetupError("An Ollama model name is required.")
        self.model = model.strip()
        self.base_url = resolve_base_url(base_url)
        self.client = client
        self.queue_size = queue_size
        self.timeout_seconds = timeout_seconds

    def installed_models(self) -> list[str]:
        """Return model names reported by ``/api/tags``."""
        url = f"{self.base_url}/api/tags"
        try:
            if self.client is not None:
                response = self.client.get(url)
            else:
                with httpx.Client(timeout=self.timeout_seconds) as client:
                    response = client.get(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise BackendSetupError(
                f"Unable to reach Ollama at {self.base_url}: {exc}. Is `ollama serve` running?"
            ) from exc
        models = (data.get("models") or []) if isinstance(data, dict) else None
        if not isinstance(models, list):
            raise BackendSetupError(f"Unexpected model list from Ollama at {self.base_url}.")
        names: list[str] = []
        for item in models:
            if not isinstance(item, dict):
                raise BackendSetupError(f"Unexpected model entry from Ollama: {item!r}")
            name = item.get("name") or item.get("model")
            if name:
                names.append(str(name))
        return names

    def ensure_model(self) -> None:
        """Raise :class:`BackendSetupError` unless the model has been pulled."""
        installed = self.installed_models()
        wanted = {self.model, f"{self.model}:latest"}
        if wanted.isdisjoint(installed):
            raise BackendSetupError(
                f"Ollama model '{self.model}' is not installed. Run `ollama pull {self.model}`."
            )

    def build_request(self, prompt: str) -> StreamRequest:
        """Return the streaming request for one prompt."""
        return StreamRequest(
            url=f"{self.base_url}/api/generate",
            payload={"model": self.model, "prompt": prompt, "stream": True},
            output_field="response",
            headers={"Content-Type": "application/json"},
            timeout_seconds=self.timeout_seconds,
            stop_field="done",
            error_field="error",
        )

    def stream_generate(self, prompt: str) -> GenerationStream:
        """Stream the daemon's reply to ``prompt``."""
        logger.info("Generating with Ollama model %s at %s", self.model, self.base_url)
        return GenerationStream(
            self.build_request(prompt),
            client=self.client,
            queue_size=self.queue_size,
        )
