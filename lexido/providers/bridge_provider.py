"""Backend that proxies prompts to an operator-described HTTP endpoint."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from lexido.bridge.config import load_bridge_config
from lexido.bridge.stream import DEFAULT_QUEUE_SIZE, GenerationStream, stream_generate

logger = logging.getLogger(__name__)


class BridgeProvider:
    """Generation backend driven by the bridge configuration file."""

    name = "bridge"

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        client: httpx.Client | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self.config_path = config_path
        self.client = client
        self.queue_size = queue_size

    def stream_generate(self, prompt: str) -> GenerationStream:
        """Load the configuration afresh and stream the endpoint's reply."""
        config = load_bridge_config(self.config_path)
        logger.info("Bridging prompt to %s", config.url)
        return stream_generate(config, prompt, client=self.client, queue_size=self.queue_size)
