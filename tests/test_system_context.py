"""Tests for the system description placed in front of prompts."""

from __future__ import annotations

import platform
import shutil

from lexido import system_context
from lexido.system_context import DEFAULT_PRE_PROMPT, SystemContext, wrap_prompt


def test_wrap_prompt_places_user_prompt_after_context() -> None:
    context = SystemContext("ada", "macOS", "laptop", "/tmp", ())

    wrapped = wrap_prompt("hi", context)

    assert wrapped.startswith(DEFAULT_PRE_PROMPT)
    assert wrapped.endswith("\n User: hi")
    assert "The user, ada, is currently running macOS on laptop in /tmp." in wrapped
    assert "package managers installed: none detected." in wrapped


def test_collect_detects_installed_package_managers(monkeypatch) -> None:
    installed = {"pip", "apt"}
    monkeypatch.setattr(
        shutil, "which", lambda name: f"/usr/bin/{name}" if name in installed else None
    )
    monkeypatch.setattr(platform, "node", lambda: "box")

    context = SystemContext.collect()

    assert context.package_managers == ("apt", "pip")
    assert context.hostname == "box"


def test_macos_is_named_explicitly(monkeypatch) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Darwin")

    assert system_context._operating_system() == "macOS"


def test_linux_falls_back_when_os_release_is_missing(monkeypatch) -> None:
    def missing() -> dict[str, str]:
        raise OSError("no os-release")

    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.setattr(platform, "freedesktop_os_release", missing)

    assert system_context._operating_system() == "Linux"


def test_linux_uses_pretty_name(monkeypatch) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.setattr(
        platform, "freedesktop_os_release", lambda: {"NAME": "Fedora", "PRETTY_NAME": "Fedora 40"}
    )

    assert system_context._operating_system() == "Fedora 40"
