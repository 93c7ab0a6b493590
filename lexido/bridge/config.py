"""Loading and validation of the declarative bridge endpoint configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from lexido.errors import ConfigError, SetupRequiredError
from lexido.storage import file_path

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "remoteConfig.json"

DEFAULT_CONFIG = """{
  "api_config": {
    "url": "https://api.example.com/endpoint/v1/chat/completions",
    "headers": {
      "Content-Type": "application/json",
      "Accept": "application/json"
    },
    "data_template": {
      "model": "example-model",
      "messages": "<PROMPT>"
    },
    "field_to_extract": "response"
  }
}
"""


class ApiConfigModel(BaseModel):
    """Schema of the ``api_config`` section."""

    url: str = Field(..., min_length=1)
    headers: dict[str, str] = Field(default_factory=dict)
    data_template: Any
    field_to_extract: str = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        try:
            parsed = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"url is not a valid URL: {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError("url must be an absolute http(s) URL")
        return value

    @field_validator("headers")
    @classmethod
    def check_headers(cls, value: dict[str, str]) -> dict[str, str]:
        # HTTP header names and values are sent as ASCII.
        for name, header_value in value.items():
            if not (name.isascii() and header_value.isascii()):
                raise ValueError(f"header {name!r} must contain only ASCII characters")
        return value


class RemoteConfigModel(BaseModel):
    """Schema of the whole bridge configuration file."""

    api_config: ApiConfigModel


@dataclass(frozen=True)
class BridgeConfig:
    """Validated endpoint description used to build one bridge request."""

    url: str
    data_template: Any
    field_to_extract: str
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Any) -> BridgeConfig:
        """Validate a decoded configuration document."""
        try:
            model = RemoteConfigModel.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid bridge configuration: {exc}") from exc
        api = model.api_config
        return cls(
            url=api.url,
            headers=dict(api.headers),
            data_template=api.data_template,
            field_to_extract=api.field_to_extract,
        )


def default_config_path() -> Path:
    """Return the bridge configuration path under lexido home."""
    return file_path(CONFIG_FILE_NAME)


def load_bridge_config(path: Path | None = None) -> BridgeConfig:
    """Read the bridge configuration, writing a default file on first run.

    Every call re-reads the file so each request works on its own copy of the
    body template.
    """
    config_path = path or default_config_path()
    try:
        content = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
        logger.warning("Bridge configuration missing; default written to %s", config_path)
        raise SetupRequiredError(config_path) from None
    except OSError as exc:
        raise ConfigError(f"Unable to read bridge configuration {config_path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Bridge configuration {config_path} is not UTF-8 text: {exc}") from exc

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Bridge configuration {config_path} is not valid JSON: {exc}") from exc
    config = BridgeConfig.from_mapping(payload)
    logger.debug("Loaded bridge configuration for %s", config.url)
    return config
