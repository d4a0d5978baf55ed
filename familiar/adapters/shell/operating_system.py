"""
Operating system probe — which OS are we running on.

Package managers ask this to decide ``is_supported()``. The current
OS is injected at construction so tests can pretend to be anywhere.
"""

from __future__ import annotations

import platform
from enum import StrEnum


class OperatingSystem(StrEnum):
    """Operating systems, named as ``platform.system().lower()`` reports them."""

    WINDOWS = "windows"
    MACOS = "darwin"
    LINUX = "linux"


def current_operating_system() -> str:
    return platform.system().lower()


class OperatingSystemService:
    """Answers questions about the current operating system."""

    def __init__(self, current: str | None = None) -> None:
        self._current = (current or current_operating_system()).lower()

    @property
    def current(self) -> str:
        return self._current

    def is_windows(self) -> bool:
        return self._current == OperatingSystem.WINDOWS

    def is_macos(self) -> bool:
        return self._current == OperatingSystem.MACOS

    def is_linux(self) -> bool:
        return self._current == OperatingSystem.LINUX
