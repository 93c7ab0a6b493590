"""Tests for the conversation cache."""

from __future__ import annotations

from pathlib import Path

from lexido.conversation import CACHE_FILE_NAME, cache_path, read_conversation, save_conversation


def test_read_without_cache_returns_empty(tmp_path: Path) -> None:
    assert read_conversation(tmp_path / "missing.txt") == ""


def test_save_replaces_previous_exchange(tmp_path: Path) -> None:
    path = tmp_path / CACHE_FILE_NAME

    save_conversation("first", "one", path)
    save_conversation("second", "two", path)

    assert read_conversation(path) == "second\ntwo"


def test_cache_path_lives_under_lexido_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("LEXIDO_HOME", str(tmp_path / "home"))

    assert cache_path() == (tmp_path / "home" / CACHE_FILE_NAME).resolve()
