"""
Mock package manager — in-memory test double for the engine and CLI.

Keeps a fake set of installed packages, records every call, and can be
told to fail a given operation. Never touches a real tool.
"""

from __future__ import annotations

from typing import IO

from familiar.adapters.base import PackageManager, PackageManagerError
from familiar.adapters.shell.command import ShellCommandService
from familiar.adapters.shell.operating_system import OperatingSystemService
from familiar.core.models.package import Package
from familiar.core.models.version import Version


class MockPackageManager(PackageManager):
    """Scriptable package manager for tests.

    By default every operation succeeds. Installing or updating a
    package yields, in priority order: the version set with
    ``set_obtained_version``, the requested version, the package's
    known latest version, or ``1.0.0``.
    """

    def __init__(
        self,
        name: str = "mock",
        order: int = 1,
        supported: bool = True,
        installed: bool = True,
        packages: dict[str, str] | None = None,
        latest: dict[str, str] | None = None,
        output: IO[str] | None = None,
    ) -> None:
        super().__init__(OperatingSystemService(), ShellCommandService(output), output)
        self._name = name
        self._order = order
        self._supported = supported
        self._installed = installed
        self._packages = {n: Version(v) for n, v in (packages or {}).items()}
        self._latest = {n: Version(v) for n, v in (latest or {}).items()}
        self._obtained: dict[str, Version] = {}
        self._failures: dict[str, Exception] = {}
        self._call_log: list[tuple[str, ...]] = []

    # ── Identity ────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def order(self) -> int:
        return self._order

    def is_supported(self) -> bool:
        return self._supported

    # ── Scripting ───────────────────────────────────────────────

    @property
    def call_log(self) -> list[tuple[str, ...]]:
        """Every call received, as ``(operation, *args)``."""
        return self._call_log

    @property
    def packages(self) -> dict[str, Version]:
        """Current fake installed state."""
        return dict(self._packages)

    def set_failure(self, operation: str, error: Exception | None = None) -> None:
        """Make ``operation`` (e.g. 'install_package') raise."""
        self._failures[operation] = error or PackageManagerError("Mock failure")

    def set_obtained_version(self, package_name: str, version: str) -> None:
        """Force the version an install or update reports."""
        self._obtained[package_name] = Version(version)

    def set_latest_version(self, package_name: str, version: str) -> None:
        """Make a newer version of an installed package available."""
        self._latest[package_name] = Version(version)

    def reset(self) -> None:
        """Clear call log and failures."""
        self._call_log.clear()
        self._failures.clear()

    def _record(self, operation: str, *args: str) -> None:
        self._call_log.append((operation, *args))
        error = self._failures.get(operation)
        if error is not None:
            raise error

    # ── Operations ──────────────────────────────────────────────

    def is_installed(self) -> bool:
        self._record("is_installed")
        return self._installed

    def install(self) -> None:
        self._record("install")
        self._installed = True

    def update(self) -> None:
        self._record("update")

    def uninstall(self) -> None:
        self._record("uninstall")
        self._installed = False

    def installed_packages(self) -> list[Package]:
        self._record("installed_packages")
        return self._merge(self._packages, self._latest)

    def install_package(self, package_name: str, version: Version | None = None) -> Version:
        self._record("install_package", package_name, str(version or ""))
        return self._obtain(package_name, version)

    def update_package(self, package_name: str, version: Version | None = None) -> Version:
        self._record("update_package", package_name, str(version or ""))
        if package_name not in self._packages:
            raise PackageManagerError("error updating package")
        return self._obtain(package_name, version)

    def uninstall_package(self, package_name: str) -> None:
        self._record("uninstall_package", package_name)
        if self._packages.pop(package_name, None) is None:
            raise PackageManagerError("error uninstalling package")

    def _obtain(self, package_name: str, version: Version | None) -> Version:
        obtained = (
            self._obtained.get(package_name)
            or version
            or self._latest.get(package_name)
            or Version("1.0.0")
        )
        self._packages[package_name] = obtained
        self._latest.pop(package_name, None)
        return obtained
