"""Description of the user's machine placed in front of every prompt."""

from __future__ import annotations

import getpass
import logging
import os
import platform
import shutil
from dataclasses import dataclass

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

DEFAULT_PRE_PROMPT = (
    "You are lexido, a concise assistant running in the user's terminal. "
    "Answer the question directly. When shell commands help, put each one in its "
    "own fenced code block and prefer commands that work on the user's system."
)

PACKAGE_MANAGERS = (
    "apt",
    "dnf",
    "yum",
    "pacman",
    "zypper",
    "apk",
    "emerge",
    "nix",
    "snap",
    "flatpak",
    "brew",
    "port",
    "pip",
    "npm",
    "cargo",
)


@dataclass(frozen=True)
class SystemContext:
    """Facts about the current session that help the model tailor commands."""

    username: str
    operating_system: str
    hostname: str
    cwd: str
    package_managers: tuple[str, ...]

    @classmethod
    def collect(cls) -> SystemContext:
        return cls(
            username=_username(),
            operating_system=_operating_system(),
            hostname=platform.node() or UNKNOWN,
            cwd=_cwd(),
            package_managers=tuple(name for name in PACKAGE_MANAGERS if shutil.which(name)),
        )

    def pre_prompt(self) -> str:
        managers = ", ".join(self.package_managers) or "none detected"
        return (
            f"{DEFAULT_PRE_PROMPT} The user, {self.username}, is currently running "
            f"{self.operating_system} on {self.hostname} in {self.cwd}. "
            f"The user has the following package managers installed: {managers}."
        )


def wrap_prompt(prompt: str, context: SystemContext) -> str:
    """Prefix ``prompt`` with the system description."""
    return f"{context.pre_prompt()}\n User: {prompt}"


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError) as exc:
        logger.debug("Unable to determine username: %s", exc)
        return UNKNOWN


def _cwd() -> str:
    try:
        return os.getcwd()
    except OSError as exc:
        logger.debug("Unable to determine working directory: %s", exc)
        return UNKNOWN


def _operating_system() -> str:
    system = platform.system()
    if system == "Darwin":
        return "macOS"
    if system == "Linux":
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            return "Linux"
        return release.get("PRETTY_NAME") or release.get("NAME") or "Linux"
    return system or UNKNOWN
