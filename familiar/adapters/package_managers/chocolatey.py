"""
Chocolatey package manager adapter (Windows).

Uses ``--limit-output`` everywhere, which makes ``choco`` print
pipe-separated records instead of its human-readable report.
"""

from __future__ import annotations

import logging
import re

from familiar.adapters.base import PackageManager, PackageManagerError
from familiar.core.models.package import Package
from familiar.core.models.version import Version

logger = logging.getLogger(__name__)

_PROGRAM = "choco"
_WHOLE_OUTPUT = r"(?s)(.*)"
_INSTALL_SCRIPT = (
    "Set-ExecutionPolicy Bypass -Scope Process -Force; "
    "[System.Net.ServicePointManager]::SecurityProtocol = "
    "[System.Net.ServicePointManager]::SecurityProtocol -bor 3072; "
    "iex ((New-Object System.Net.WebClient).DownloadString("
    "'https://community.chocolatey.org/install.ps1'))"
)


def parse_records(output: str, min_fields: int) -> list[list[str]]:
    """Split ``--limit-output`` text into ``|``-separated records.

    Raises:
        PackageManagerError: If a record has fewer than ``min_fields``.
    """
    records = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        fields = line.split("|")
        if len(fields) < min_fields:
            raise PackageManagerError(f"unexpected record in `choco` output: {line!r}")
        records.append(fields)
    return records


class ChocolateyPackageManager(PackageManager):
    """Drives the ``choco`` command line."""

    @property
    def name(self) -> str:
        return "chocolatey"

    @property
    def order(self) -> int:
        return 2

    def is_supported(self) -> bool:
        return self._operating_system.is_windows()

    def is_installed(self) -> bool:
        self._say(f'Checking if package manager "{self.name}" is installed...')
        return self._probe(_PROGRAM, "--version")

    def install(self) -> None:
        self._say(f'Installing package manager "{self.name}"...')
        self._shell.run("powershell", _INSTALL_SCRIPT, print_output=True)

    def update(self) -> None:
        self._say(f'Updating package manager "{self.name}"...')
        self._shell.run(_PROGRAM, "upgrade", _PROGRAM, "-y", print_output=True)

    def uninstall(self) -> None:
        self._say(f'Uninstalling package manager "{self.name}"...')
        self._uninstall(_PROGRAM, "error uninstalling package manager")

    def installed_packages(self) -> list[Package]:
        self._say(f'Getting installed package information from package manager "{self.name}"...')

        listed = self._shell.run(_PROGRAM, "list", "--limit-output", result_pattern=_WHOLE_OUTPUT)
        installed = {
            fields[0]: Version(fields[1]) for fields in parse_records(listed, min_fields=2)
        }

        # name|current|available|pinned
        outdated_output = self._shell.run(
            _PROGRAM, "outdated", "--limit-output", result_pattern=_WHOLE_OUTPUT
        )
        outdated = {
            fields[0]: Version(fields[2])
            for fields in parse_records(outdated_output, min_fields=3)
        }

        logger.debug("chocolatey: %d installed, %d outdated", len(installed), len(outdated))
        return self._merge(installed, outdated)

    def install_package(self, package_name: str, version: Version | None = None) -> Version:
        self._say(f'Installing package "{package_name}"...')
        self._shell.run(
            _PROGRAM, "install", package_name, "-y", *_version_args(version), print_output=True
        )
        return self._installed_version(package_name, "error installing package")

    def update_package(self, package_name: str, version: Version | None = None) -> Version:
        self._say(f'Updating package "{package_name}"...')
        self._shell.run(
            _PROGRAM, "upgrade", package_name, "-y", *_version_args(version), print_output=True
        )
        return self._installed_version(package_name, "error updating package")

    def uninstall_package(self, package_name: str) -> None:
        self._say(f'Uninstalling package "{package_name}"...')
        self._uninstall(package_name, "error uninstalling package")

    # ── Internals ───────────────────────────────────────────────

    def _uninstall(self, package_name: str, error_message: str) -> None:
        captured = self._shell.run(
            _PROGRAM,
            "uninstall",
            package_name,
            "-y",
            result_pattern=r"(uninstalled 1/1 packages)",
            print_output=True,
        )
        self._require(captured, error_message)

    def _installed_version(self, package_name: str, error_message: str) -> Version:
        """Ask ``choco`` which version of a package ended up installed."""
        captured = self._shell.run(
            _PROGRAM,
            "list",
            "--limit-output",
            "--exact",
            package_name,
            result_pattern=rf"(?im)^{re.escape(package_name)}\|(\S+)\s*$",
        )
        return Version(self._require(captured, error_message))


def _version_args(version: Version | None) -> list[str]:
    return ["--version", str(version)] if version else []
