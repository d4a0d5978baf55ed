"""
Package use cases — the logic behind ``familiar package ...``.

Each function takes the registry, the config service and the output
stream, prints progress for the user, and raises ``FamiliarError``
subclasses on failure. The CLI layer only parses arguments and
reports errors.

Whenever a command leaves a package at a newer version than the one
configured, the configured version is raised to match. ``import`` is
the one command that lowers configured versions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import IO

import click

from familiar.adapters.base import PackageManager
from familiar.adapters.registry import PackageManagerRegistry
from familiar.core.config.loader import ConfigService
from familiar.core.models.config import Config, PackageManagerNotPresentError
from familiar.core.models.package import Package
from familiar.core.models.version import Version

logger = logging.getLogger(__name__)


def _say(output: IO[str] | None, message: str) -> None:
    click.echo(message, file=output)


def _installed_managers(
    registry: PackageManagerRegistry,
    output: IO[str] | None,
    not_installed_message: str,
) -> list[PackageManager]:
    """Supported package managers that are installed, in registry order."""
    found = []
    for package_manager in registry.get_all():
        if not package_manager.is_supported():
            continue
        if package_manager.is_installed():
            found.append(package_manager)
        else:
            _say(output, not_installed_message.format(name=package_manager.name))
    return found


def _raise_configured_version(
    config_service: ConfigService,
    package_manager_name: str,
    package_name: str,
    new_version: Version,
) -> bool:
    """Raise a package's configured version to ``new_version`` if it is lower.

    Packages not in the config are left alone.
    """
    config = config_service.get_config()
    package_manager = config.get_package_manager(package_manager_name)
    if package_manager is None:
        return False
    configured = package_manager.get_package(package_name)
    if configured is None or not configured.desired_version.is_less_than(new_version):
        return False

    config.update_package(package_manager_name, package_name, new_version)
    config_service.set_config(config)
    logger.info("Configured version of %s raised to %s", package_name, new_version)
    return True


# ── add / remove ────────────────────────────────────────────────


def add_package_manager(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    output: IO[str] | None = None,
) -> None:
    """Add a package manager to the config document."""
    config = config_service.get_config()
    config.add_package_manager(package_manager_name, registry)
    config_service.set_config(config)
    _say(output, "Package manager added.")


def remove_package_manager(
    config_service: ConfigService,
    package_manager_name: str,
    output: IO[str] | None = None,
) -> None:
    """Remove a package manager (and its packages) from the config document."""
    config = config_service.get_config()
    config.remove_package_manager(package_manager_name)
    config_service.set_config(config)
    _say(output, "Package manager removed.")


def add_package(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    package_name: str,
    output: IO[str] | None = None,
) -> Version:
    """Install the latest version of a package and record it in the config.

    Returns:
        The version that was installed.
    """
    package_manager = registry.get(package_manager_name)

    # Fail before installing anything if the config can't take the package
    if config_service.get_config().get_package_manager(package_manager_name) is None:
        raise PackageManagerNotPresentError()

    package_manager.update()
    installed_version = package_manager.install_package(package_name)

    config = config_service.get_config()
    config.add_package(package_manager_name, package_name, installed_version)
    config_service.set_config(config)
    _say(output, f'Package "{package_name}" added, version {installed_version}.')
    return installed_version


def remove_package(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    package_name: str,
    output: IO[str] | None = None,
) -> None:
    """Uninstall a package and remove it from the config."""
    package_manager = registry.get(package_manager_name)
    package_manager.uninstall_package(package_name)

    config = config_service.get_config()
    config.remove_package(package_manager_name, package_name)
    config_service.set_config(config)
    _say(output, f'Package "{package_name}" removed.')


# ── update ──────────────────────────────────────────────────────


def update_packages(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    output: IO[str] | None = None,
) -> dict[str, dict[str, Version]]:
    """Update outdated packages of every supported, installed package manager.

    Returns:
        ``{manager: {package: new version}}`` for every package updated.
    """
    updated: dict[str, dict[str, Version]] = {}
    skip_message = 'Skipping package manager "{name}" because it is not installed.'
    for package_manager in _installed_managers(registry, output, skip_message):
        updated[package_manager.name] = update_packages_for_package_manager(
            registry, config_service, package_manager.name, output
        )
    return updated


def update_packages_for_package_manager(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    output: IO[str] | None = None,
) -> dict[str, Version]:
    """Update every outdated package of one package manager.

    Returns:
        ``{package: new version}`` for every package updated.
    """
    package_manager = registry.get(package_manager_name)
    package_manager.update()

    updated: dict[str, Version] = {}
    for package in package_manager.installed_packages():
        if not package.has_update:
            _say(output, f'Skipping package "{package.name}" because it is already up to date.')
            continue
        new_version = package_manager.update_package(package.name)
        updated[package.name] = new_version
        _raise_configured_version(config_service, package_manager_name, package.name, new_version)
    return updated


def update_package(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    package_name: str,
    output: IO[str] | None = None,
) -> Version | None:
    """Update one package if a newer version is available.

    Returns:
        The new version, or None if nothing was updated.
    """
    package_manager = registry.get(package_manager_name)
    package_manager.update()

    package = _find(package_manager.installed_packages(), package_name)
    if package is None:
        _say(output, f'Package "{package_name}" is not installed.')
        return None
    if not package.has_update:
        _say(output, f'Package "{package_name}" is already up to date.')
        return None

    new_version = package_manager.update_package(package_name)
    _raise_configured_version(config_service, package_manager_name, package_name, new_version)
    return new_version


def _find(packages: list[Package], package_name: str) -> Package | None:
    for package in packages:
        if package.name == package_name:
            return package
    return None


# ── status ──────────────────────────────────────────────────────


@dataclass
class PackageStatus:
    """Configured, installed and newer version of one package."""

    name: str
    configured_version: str | None = None
    installed_version: Version | None = None
    newer_version: Version | None = None

    @classmethod
    def build(
        cls,
        name: str,
        configured_version: str | None,
        installed: Package | None,
    ) -> PackageStatus:
        newer = installed.latest_version if installed is not None and installed.has_update else None
        return cls(
            name=name,
            configured_version=configured_version,
            installed_version=installed.installed_version if installed is not None else None,
            newer_version=newer,
        )

    def lines(self, indent: str = "") -> list[str]:
        values = (
            ("Configured version", self.configured_version),
            ("Installed version", self.installed_version),
            ("Newer version", self.newer_version),
        )
        return [f"{indent}- {label}: {value or ''}".rstrip() for label, value in values]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "configured_version": self.configured_version,
            "installed_version": str(self.installed_version) if self.installed_version else None,
            "newer_version": str(self.newer_version) if self.newer_version else None,
        }


def _configured_versions(config: Config, package_manager_name: str) -> dict[str, str]:
    package_manager = config.get_package_manager(package_manager_name)
    if package_manager is None:
        return {}
    return {p.name: p.version for p in package_manager.packages}


def status(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    output: IO[str] | None = None,
) -> dict[str, list[PackageStatus]]:
    """Print package status for every supported, installed package manager."""
    result: dict[str, list[PackageStatus]] = {}
    skip_message = 'Package manager "{name}" is not installed.'
    for package_manager in _installed_managers(registry, output, skip_message):
        result[package_manager.name] = status_for_package_manager(
            registry, config_service, package_manager.name, output
        )
    return result


def status_for_package_manager(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    output: IO[str] | None = None,
) -> list[PackageStatus]:
    """Print the status of every configured or installed package of one manager.

    Configured packages come first (in config order), then packages that
    are installed but not configured.
    """
    configured = _configured_versions(config_service.get_config(), package_manager_name)

    package_manager = registry.get(package_manager_name)
    package_manager.update()
    installed = {p.name: p for p in package_manager.installed_packages()}

    if not configured and not installed:
        _say(
            output,
            f'No packages configured or installed for package manager "{package_manager.name}".',
        )
        return []

    statuses = [
        PackageStatus.build(name, version, installed.get(name))
        for name, version in configured.items()
    ]
    statuses.extend(
        PackageStatus.build(name, None, package)
        for name, package in installed.items()
        if name not in configured
    )

    _say(output, f'Status of packages for package manager "{package_manager.name}":')
    for package_status in statuses:
        _say(output, f"- {package_status.name}")
        for line in package_status.lines(indent="  "):
            _say(output, line)
    return statuses


def status_for_package(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    package_name: str,
    output: IO[str] | None = None,
) -> PackageStatus:
    """Print the status of a single package."""
    configured = _configured_versions(config_service.get_config(), package_manager_name)

    package_manager = registry.get(package_manager_name)
    package_manager.update()
    installed = _find(package_manager.installed_packages(), package_name)

    package_status = PackageStatus.build(package_name, configured.get(package_name), installed)
    _say(
        output,
        f'Status of package "{package_name}" for package manager "{package_manager.name}":',
    )
    for line in package_status.lines():
        _say(output, line)
    return package_status


# ── import ──────────────────────────────────────────────────────


@dataclass
class ImportResult:
    """Config changes made by importing one package manager's packages."""

    package_manager: str
    added: dict[str, Version] = field(default_factory=dict)
    lowered: dict[str, Version] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.lowered)

    def to_dict(self) -> dict:
        return {
            "package_manager": self.package_manager,
            "added": {k: str(v) for k, v in self.added.items()},
            "lowered": {k: str(v) for k, v in self.lowered.items()},
        }


def import_packages(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    output: IO[str] | None = None,
) -> list[ImportResult]:
    """Import installed packages from every supported, installed package manager."""
    skip_message = 'Skipping package manager "{name}" because it is not installed.'
    return [
        import_packages_from_package_manager(registry, config_service, pm.name, output)
        for pm in _installed_managers(registry, output, skip_message)
    ]


def import_packages_from_package_manager(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    package_manager_name: str,
    output: IO[str] | None = None,
) -> ImportResult:
    """Bring the config in line with what one package manager has installed.

    Installed packages missing from the config are added at their
    installed version. Configured versions higher than the installed
    one are lowered to match. The package manager itself is added to
    the config if it is not there yet.
    """
    package_manager = registry.get(package_manager_name)
    package_manager.update()
    installed_packages = package_manager.installed_packages()

    if installed_packages:
        _say(output, f"Packages currently installed with {package_manager.name}:")
        for package in installed_packages:
            _say(output, f"- {package.name}, version {package.installed_version}")
    else:
        _say(output, f"No packages are currently installed with {package_manager.name}.")

    config = config_service.get_config()
    manager_added = config.get_package_manager(package_manager_name) is None
    if manager_added:
        config.add_package_manager(package_manager_name, registry)
    configured = config.desired_versions(package_manager_name)

    result = ImportResult(package_manager=package_manager_name)
    for package in installed_packages:
        configured_version = configured.get(package.name)
        if configured_version is None:
            _say(
                output,
                f'Adding package "{package.name}" to configuration for package manager '
                f'"{package_manager_name}".',
            )
            config.add_package(package_manager_name, package.name, package.installed_version)
            result.added[package.name] = package.installed_version
        elif configured_version.is_greater_than(package.installed_version):
            _say(
                output,
                f'Updating version of package "{package.name}" in configuration for package '
                f'manager "{package_manager_name}".',
            )
            config.update_package(package_manager_name, package.name, package.installed_version)
            result.lowered[package.name] = package.installed_version

    if manager_added or result.changed:
        config_service.set_config(config)
    if not result.changed:
        _say(
            output,
            f'No packages to add or update in configuration for package manager '
            f'"{package_manager_name}".',
        )
    return result
