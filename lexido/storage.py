"""Filesystem locations for lexido configuration files."""

from __future__ import annotations

import os
from pathlib import Path

LEXIDO_HOME_ENV = "LEXIDO_HOME"


def resolve_home() -> Path:
    """Resolve lexido home directory from env or default location."""
    env_value = os.environ.get(LEXIDO_HOME_ENV)
    if env_value:
        return Path(env_value).expanduser().resolve()
    return (Path.home() / ".lexido").resolve()


def file_path(name: str, home_dir: Path | None = None) -> Path:
    """Return the path of a named file under lexido home, creating the directory."""
    resolved_home = (home_dir or resolve_home()).expanduser().resolve()
    resolved_home.mkdir(parents=True, exist_ok=True)
    return resolved_home / name
