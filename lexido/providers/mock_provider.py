"""Test backend that replays queued chunk sequences."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class MockProvider:
    """A deterministic backend for unit tests and offline runs."""

    name = "mock"

    def __init__(self, responses: Iterable[list[str]]) -> None:
        """Initialize mock backend with queued chunk lists, one per generation."""
        self._responses = [list(item) for item in responses]
        self.prompts: list[str] = []

    def stream_generate(self, prompt: str) -> Iterator[str]:
        """Return an iterator over the next queued response and record the prompt."""
        self.prompts.append(prompt)
        if not self._responses:
            raise RuntimeError("MockProvider has no remaining responses.")
        return iter(self._responses.pop(0))
