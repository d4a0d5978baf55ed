"""
Scoop package manager adapter (Windows).

Scoop exits 0 for most failures, so every mutation checks its output
for a success marker. Installed packages come from ``scoop export``
(JSON) and available updates from the ``scoop status`` table.
"""

from __future__ import annotations

import json
import logging
import re

from familiar.adapters.base import PackageManager, PackageManagerError
from familiar.core.models.package import Package
from familiar.core.models.version import Version

logger = logging.getLogger(__name__)

_PROGRAM = "scoop"
_WHOLE_OUTPUT = r"(?s)(.*)"


def parse_export(output: str) -> dict[str, Version]:
    """Parse ``scoop export`` JSON into ``{name: installed version}``.

    Raises:
        PackageManagerError: If the output is not the expected JSON.
    """
    try:
        data = json.loads(output.lstrip("\ufeff") or "{}")
    except json.JSONDecodeError as e:
        raise PackageManagerError(f"invalid output from `scoop export`: {e}") from e

    if not isinstance(data, dict):
        raise PackageManagerError("invalid output from `scoop export`: expected an object")

    installed: dict[str, Version] = {}
    for app in data.get("apps") or []:
        name = app.get("name") or app.get("Name")
        version = app.get("version") or app.get("Version") or ""
        if name:
            installed[name] = Version(version)
    return installed


def parse_status(output: str) -> dict[str, Version]:
    """Parse the ``scoop status`` table into ``{name: latest version}``.

    Rows follow the dashed header line. Output without a table means
    everything is up to date.

    Raises:
        PackageManagerError: If a row has fewer than three fields.
    """
    outdated: dict[str, Version] = {}
    in_table = False
    for line in output.splitlines():
        stripped = line.strip()
        if not in_table:
            in_table = stripped.startswith("----")
            continue
        if not stripped:
            if outdated:
                break
            continue

        fields = stripped.split()
        if len(fields) < 3:
            raise PackageManagerError(f"unexpected row in `scoop status` output: {stripped!r}")
        outdated[fields[0]] = Version(fields[2])
    return outdated


class ScoopPackageManager(PackageManager):
    """Drives the ``scoop`` command line."""

    @property
    def name(self) -> str:
        return "scoop"

    @property
    def order(self) -> int:
        return 1

    def is_supported(self) -> bool:
        return self._operating_system.is_windows()

    def is_installed(self) -> bool:
        self._say(f'Checking if package manager "{self.name}" is installed...')
        return self._probe(_PROGRAM, "--version")

    def install(self) -> None:
        self._say(f'Installing package manager "{self.name}"...')
        self._shell.run("powershell", "irm get.scoop.sh | iex", print_output=True)

    def update(self) -> None:
        self._say(f'Updating package manager "{self.name}"...')
        captured = self._shell.run(
            _PROGRAM, "update", result_pattern=r"(Scoop was updated)", print_output=True
        )
        self._require(captured, "error updating package manager")

    def uninstall(self) -> None:
        self._say(f'Uninstalling package manager "{self.name}"...')
        captured = self._shell.run(
            _PROGRAM,
            "uninstall",
            _PROGRAM,
            result_pattern=r"('scoop' was uninstalled)",
            print_output=True,
        )
        self._require(captured, "error uninstalling package manager")

    def installed_packages(self) -> list[Package]:
        self._say(f'Getting installed package information from package manager "{self.name}"...')
        installed = parse_export(self._shell.run(_PROGRAM, "export", result_pattern=_WHOLE_OUTPUT))
        outdated = parse_status(self._shell.run(_PROGRAM, "status", result_pattern=_WHOLE_OUTPUT))
        logger.debug("scoop: %d installed, %d outdated", len(installed), len(outdated))
        return self._merge(installed, outdated)

    def install_package(self, package_name: str, version: Version | None = None) -> Version:
        self._say(f'Installing package "{package_name}"...')
        target = f"{package_name}@{version}" if version else package_name
        captured = self._shell.run(
            _PROGRAM,
            "install",
            target,
            result_pattern=_installed_pattern(package_name),
            print_output=True,
        )
        return Version(self._require(captured, "error installing package"))

    def update_package(self, package_name: str, version: Version | None = None) -> Version:
        # scoop can only update to the latest version
        self._say(f'Updating package "{package_name}"...')
        captured = self._shell.run(
            _PROGRAM,
            "update",
            package_name,
            result_pattern=_installed_pattern(package_name),
            print_output=True,
        )
        return Version(self._require(captured, "error updating package"))

    def uninstall_package(self, package_name: str) -> None:
        self._say(f'Uninstalling package "{package_name}"...')
        captured = self._shell.run(
            _PROGRAM,
            "uninstall",
            package_name,
            result_pattern=f"('{re.escape(package_name)}' was uninstalled)",
            print_output=True,
        )
        self._require(captured, "error uninstalling package")


def _installed_pattern(package_name: str) -> str:
    return rf"'{re.escape(package_name)}' \((.*?)\) was installed"
