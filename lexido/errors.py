"""Exception hierarchy shared by backends, the bridge and the CLI."""

from __future__ import annotations

from pathlib import Path


class LexidoError(RuntimeError):
    """Base class for errors surfaced to the command-line user."""


class ConfigError(LexidoError):
    """Configuration is missing or invalid and needs operator attention."""


class SetupRequiredError(ConfigError):
    """A default configuration was written and must be edited before use."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"default config created at {path}, please edit")
        self.path = path


class PayloadSerializationError(LexidoError):
    """Request body could not be encoded as JSON."""


class TransportError(LexidoError):
    """Connection, HTTP status, or mid-stream read failure."""


class BackendSetupError(LexidoError):
    """A backend cannot be used with the current environment."""


class ContentBlockedError(LexidoError):
    """The provider refused to complete the generation."""
