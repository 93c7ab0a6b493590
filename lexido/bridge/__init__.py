"""Configuration-driven bridge to arbitrary newline-delimited JSON endpoints."""

from lexido.bridge.config import BridgeConfig, load_bridge_config
from lexido.bridge.json_tree import extract, substitute
from lexido.bridge.stream import (
    PROMPT_PLACEHOLDER,
    GenerationStream,
    StreamRequest,
    StreamState,
    stream_generate,
)

__all__ = [
    "PROMPT_PLACEHOLDER",
    "BridgeConfig",
    "GenerationStream",
    "StreamRequest",
    "StreamState",
    "extract",
    "load_bridge_config",
    "stream_generate",
    "substitute",
]
