"""
Homebrew package manager adapter (macOS).

Installed packages come from ``brew list --versions`` and available
updates from ``brew outdated --json=v2``. Homebrew cannot install an
arbitrary older version of a formula, so requested versions are
ignored and the latest is always installed.
"""

from __future__ import annotations

import json
import logging

from familiar.adapters.base import PackageManager, PackageManagerError
from familiar.core.models.package import Package
from familiar.core.models.version import Version

logger = logging.getLogger(__name__)

_PROGRAM = "brew"
_WHOLE_OUTPUT = r"(?s)(.*)"
_SCRIPT_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/{script}"


def _run_script(script: str) -> str:
    url = _SCRIPT_URL.format(script=script)
    return f'NONINTERACTIVE=1 /bin/bash -c "$(curl -fsSL {url})"'


def parse_versions_list(output: str) -> dict[str, Version]:
    """Parse ``brew list --versions`` into ``{name: highest version}``.

    Each line is a name followed by one or more installed versions.
    """
    installed: dict[str, Version] = {}
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        if len(fields) < 2:
            raise PackageManagerError(f"unexpected line in `brew list` output: {line.strip()!r}")
        installed[fields[0]] = max(Version(v) for v in fields[1:])
    return installed


def parse_outdated(output: str) -> dict[str, Version]:
    """Parse ``brew outdated --json=v2`` into ``{name: latest version}``.

    Raises:
        PackageManagerError: If the output is not the expected JSON.
    """
    try:
        data = json.loads(output or "{}")
    except json.JSONDecodeError as e:
        raise PackageManagerError(f"invalid output from `brew outdated`: {e}") from e

    outdated: dict[str, Version] = {}
    for entry in [*data.get("formulae", []), *data.get("casks", [])]:
        name = entry.get("name")
        current = entry.get("current_version")
        if name and current:
            outdated[name] = Version(current)
    return outdated


class HomebrewPackageManager(PackageManager):
    """Drives the ``brew`` command line."""

    @property
    def name(self) -> str:
        return "homebrew"

    @property
    def order(self) -> int:
        return 3

    def is_supported(self) -> bool:
        return self._operating_system.is_macos()

    def is_installed(self) -> bool:
        self._say(f'Checking if package manager "{self.name}" is installed...')
        return self._probe(_PROGRAM, "--version")

    def install(self) -> None:
        self._say(f'Installing package manager "{self.name}"...')
        self._shell.run("/bin/bash", "-c", _run_script("install.sh"), print_output=True)

    def update(self) -> None:
        self._say(f'Updating package manager "{self.name}"...')
        self._shell.run(_PROGRAM, "update", print_output=True)

    def uninstall(self) -> None:
        self._say(f'Uninstalling package manager "{self.name}"...')
        self._shell.run("/bin/bash", "-c", _run_script("uninstall.sh"), print_output=True)

    def installed_packages(self) -> list[Package]:
        self._say(f'Getting installed package information from package manager "{self.name}"...')
        installed = parse_versions_list(
            self._shell.run(_PROGRAM, "list", "--versions", result_pattern=_WHOLE_OUTPUT)
        )
        outdated = parse_outdated(
            self._shell.run(_PROGRAM, "outdated", "--json=v2", result_pattern=_WHOLE_OUTPUT)
        )
        logger.debug("homebrew: %d installed, %d outdated", len(installed), len(outdated))
        return self._merge(installed, outdated)

    def install_package(self, package_name: str, version: Version | None = None) -> Version:
        self._say(f'Installing package "{package_name}"...')
        if version:
            logger.info("homebrew installs the latest %s, not %s", package_name, version)
        self._shell.run(_PROGRAM, "install", package_name, print_output=True)
        return self._installed_version(package_name, "error installing package")

    def update_package(self, package_name: str, version: Version | None = None) -> Version:
        self._say(f'Updating package "{package_name}"...')
        self._shell.run(_PROGRAM, "upgrade", package_name, print_output=True)
        return self._installed_version(package_name, "error updating package")

    def uninstall_package(self, package_name: str) -> None:
        self._say(f'Uninstalling package "{package_name}"...')
        self._shell.run(_PROGRAM, "uninstall", package_name, print_output=True)

    def _installed_version(self, package_name: str, error_message: str) -> Version:
        output = self._shell.run(
            _PROGRAM, "list", "--versions", package_name, result_pattern=_WHOLE_OUTPUT
        )
        version = parse_versions_list(output).get(package_name)
        if version is None:
            raise PackageManagerError(error_message)
        return version
