"""Cache of the last prompt and answer, used to continue a conversation."""

from __future__ import annotations

from pathlib import Path

from lexido.storage import file_path

CACHE_FILE_NAME = "conversation.txt"


def cache_path(home_dir: Path | None = None) -> Path:
    """Return the conversation cache path under lexido home."""
    return file_path(CACHE_FILE_NAME, home_dir)


def read_conversation(path: Path | None = None) -> str:
    """Return the cached conversation, or an empty string when none was saved."""
    target = path or cache_path()
    if not target.exists():
        return ""
    return target.read_text(encoding="utf-8")


def save_conversation(prompt: str, response: str, path: Path | None = None) -> Path:
    """Replace the cache with the latest prompt followed by its answer."""
    target = path or cache_path()
    target.write_text(f"{prompt}\n{response}", encoding="utf-8")
    return target
