"""Backend abstraction for streaming text generation."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol


class GenerationBackend(Protocol):
    """Interface implemented by all generation backends.

    ``stream_generate`` returns a lazy, finite iterator of text chunks for one
    composed prompt. The iterator cannot be restarted; a second generation needs
    a new call. Failures are raised either from the call itself (setup problems)
    or from the iterator while chunks are being produced.
    """

    name: str

    def stream_generate(self, prompt: str) -> Iterator[str]:
        """Yield generated text chunks for the given prompt."""
        ...
