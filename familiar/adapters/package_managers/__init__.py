"""Concrete package manager adapters."""

from __future__ import annotations

from typing import IO

from familiar.adapters.base import PackageManager
from familiar.adapters.package_managers.chocolatey import ChocolateyPackageManager
from familiar.adapters.package_managers.homebrew import HomebrewPackageManager
from familiar.adapters.package_managers.scoop import ScoopPackageManager
from familiar.adapters.shell.command import ShellCommandService
from familiar.adapters.shell.operating_system import OperatingSystemService


def default_package_managers(
    operating_system: OperatingSystemService,
    shell: ShellCommandService,
    output: IO[str] | None = None,
) -> list[PackageManager]:
    """One instance of every package manager Familiar ships with."""
    return [
        ScoopPackageManager(operating_system, shell, output),
        ChocolateyPackageManager(operating_system, shell, output),
        HomebrewPackageManager(operating_system, shell, output),
    ]


__all__ = [
    "ChocolateyPackageManager",
    "HomebrewPackageManager",
    "ScoopPackageManager",
    "default_package_managers",
]
