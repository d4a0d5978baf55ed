"""
Package manager base — the capability contract between engine and tools.

This defines the abstract interface that every package manager must
implement. The engine, the registry and the ``package`` commands only
talk to package managers through this protocol, never directly to
external tools.

To add a package manager:
    1. Subclass PackageManager
    2. Implement name, order and the abstract operations
    3. Add it to ``familiar.adapters.package_managers.default_package_managers``
       and to the registry's expected names
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import IO

import click

from familiar.adapters.shell.command import (
    CommandFailedError,
    CommandNotFoundError,
    ShellCommandService,
)
from familiar.adapters.shell.operating_system import OperatingSystemService
from familiar.core.errors import FamiliarError
from familiar.core.models.package import Package, sort_packages
from familiar.core.models.version import Version

logger = logging.getLogger(__name__)


class PackageManagerError(FamiliarError):
    """A package manager reported (or implied) that an operation failed."""


def merge_outdated(
    installed: Mapping[str, Version],
    outdated: Mapping[str, Version],
    assume_unlisted_up_to_date: bool = True,
) -> list[Package]:
    """Combine a tool's "installed" and "outdated" views into packages.

    Packages missing from ``outdated`` are treated as up to date
    (latest = installed) when ``assume_unlisted_up_to_date`` is set;
    otherwise their latest version is unknown (None). Entries only in
    ``outdated`` are ignored.

    Returns:
        Packages sorted case-insensitively by name.
    """
    packages = []
    for name, installed_version in installed.items():
        latest_version = outdated.get(name)
        if latest_version is None and assume_unlisted_up_to_date:
            latest_version = installed_version
        packages.append(
            Package(
                name=name,
                installed_version=installed_version,
                latest_version=latest_version,
            )
        )
    return sort_packages(packages)


class PackageManager(ABC):
    """Abstract base class for all package managers.

    Operations raise on failure (``PackageManagerError`` or a
    ``ShellCommandError``); none are assumed idempotent.

    Every operation writes a progress line to ``output`` before
    it touches the tool.
    """

    def __init__(
        self,
        operating_system: OperatingSystemService,
        shell: ShellCommandService,
        output: IO[str] | None = None,
        assume_unlisted_up_to_date: bool = True,
    ) -> None:
        self._operating_system = operating_system
        self._shell = shell
        self._output = output
        self.assume_unlisted_up_to_date = assume_unlisted_up_to_date

    # ── Identity ────────────────────────────────────────────────

    @property
    @abstractmethod
    def name(self) -> str:
        """The registry key (e.g., 'scoop', 'homebrew')."""

    @property
    @abstractmethod
    def order(self) -> int:
        """Fixed listing position, unique across the registry (1..N)."""

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether this package manager runs on the current OS. No I/O."""

    # ── The tool itself ─────────────────────────────────────────

    @abstractmethod
    def is_installed(self) -> bool:
        """Probe whether the tool is installed.

        A probe that runs but fails means "not installed". Only a
        runner malfunction is raised.
        """

    @abstractmethod
    def install(self) -> None:
        """Install the package manager."""

    @abstractmethod
    def update(self) -> None:
        """Update the package manager (and its package index)."""

    @abstractmethod
    def uninstall(self) -> None:
        """Uninstall the package manager."""

    # ── Packages ────────────────────────────────────────────────

    @abstractmethod
    def installed_packages(self) -> list[Package]:
        """Every package the tool tracks, sorted case-insensitively by name."""

    @abstractmethod
    def install_package(self, package_name: str, version: Version | None = None) -> Version:
        """Install a package (a specific version if given, else latest).

        Returns:
            The version actually installed, as reported by the tool.
        """

    @abstractmethod
    def update_package(self, package_name: str, version: Version | None = None) -> Version:
        """Update a package (to a specific version if given, else latest).

        Returns:
            The version actually installed, as reported by the tool.
        """

    @abstractmethod
    def uninstall_package(self, package_name: str) -> None:
        """Uninstall a package."""

    # ── Helpers for subclasses ──────────────────────────────────

    def _say(self, message: str) -> None:
        """Write a progress line to the user."""
        click.echo(message, file=self._output)

    def _probe(self, program: str, *args: str) -> bool:
        """Run a version-check style command; absence or failure means False."""
        try:
            self._shell.run(program, *args)
        except (CommandNotFoundError, CommandFailedError) as e:
            logger.debug("%s probe failed: %s", self.name, e)
            return False
        return True

    @staticmethod
    def _require(captured: str, error_message: str) -> str:
        """Treat an empty capture as failure, whatever the exit code was."""
        if not captured:
            raise PackageManagerError(error_message)
        return captured

    def _merge(
        self,
        installed: Mapping[str, Version],
        outdated: Mapping[str, Version],
    ) -> list[Package]:
        return merge_outdated(installed, outdated, self.assume_unlisted_up_to_date)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} order={self.order}>"
