"""Cloud backend streaming chat completions through the OpenAI Python SDK."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

from openai import APIConnectionError, APIError, APITimeoutError, OpenAI

from lexido.errors import BackendSetupError, ContentBlockedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class OpenAIProvider:
    """Generation backend using the OpenAI Chat Completions streaming API."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL,
        temperature: float = 0.2,
        max_output_tokens: int = 2_000,
        *,
        client: OpenAI | None = None,
    ) -> None:
        """Initialize provider with API key and model settings."""
        if client is None:
            resolved_api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not resolved_api_key:
                raise BackendSetupError(
                    "OPENAI_API_KEY is required for the openai backend. "
                    "Export it or choose another backend with --backend."
                )
            # Failures end the generation; the SDK must not retry on its own.
            client = OpenAI(api_key=resolved_api_key, max_retries=0)
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def stream_generate(self, prompt: str) -> Iterator[str]:
        """Return a lazy iterator over streamed completion deltas."""
        return self._iterate(prompt)

    def _iterate(self, prompt: str) -> Iterator[str]:
        logger.info("Streaming completion from OpenAI model %s", self.model)
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_completion_tokens=self.max_output_tokens,
                messages=[{"role": "user", "content": prompt}],
                stream=True,
            )
            with stream:
                for event in stream:
                    if not event.choices:
                        continue
                    choice = event.choices[0]
                    content = choice.delta.content if choice.delta is not None else None
                    if content:
                        yield content
                    if choice.finish_reason == "content_filter":
                        raise ContentBlockedError(
                            "The content generation was blocked for safety reasons. "
                            "Please try a different prompt."
                        )
        except (APIConnectionError, APITimeoutError) as exc:
            logger.error("OpenAI connection error: %s", exc)
            raise TransportError(f"OpenAI connection failed: {exc}") from exc
        except APIError as exc:
            status = getattr(exc, "status_code", None)
            logger.error("OpenAI API error (status=%s): %s", status, exc)
            raise TransportError(f"OpenAI request failed: {exc}") from exc
