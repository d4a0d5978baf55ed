"""
Attune engine — bring this machine in line with the config document.

For every package manager listed in the document (in document order):

    supported? → install or update the manager → snapshot installed
    and desired packages → update → install → uninstall

Updates and installs can end up with a newer version than the one
configured; that version is written back to the document immediately,
so a second run is a no-op.

The first failure aborts the whole run. Nothing is rolled back: work
already done stays done, and write-backs already saved stay saved.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import IO

import click

from familiar.adapters.base import PackageManager
from familiar.adapters.registry import PackageManagerRegistry
from familiar.core.config.loader import ConfigService
from familiar.core.models.action import ActionKind, PackageAction
from familiar.core.models.config import ConfiguredPackageManager
from familiar.core.models.version import Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppliedAction:
    """An action that completed, with the version the tool reported."""

    package_manager: str
    action: PackageAction
    obtained_version: Version | None = None

    def to_dict(self) -> dict:
        return {
            "package_manager": self.package_manager,
            **self.action.to_dict(),
            "obtained_version": str(self.obtained_version) if self.obtained_version else None,
        }


@dataclass(frozen=True)
class WriteBack:
    """A configured version raised to match what was actually installed."""

    package_manager: str
    package_name: str
    old_version: Version
    new_version: Version

    def to_dict(self) -> dict:
        return {
            "package_manager": self.package_manager,
            "package": self.package_name,
            "old_version": str(self.old_version),
            "new_version": str(self.new_version),
        }


@dataclass
class AttuneReport:
    """What an attune run did."""

    attuned: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    installed_package_managers: list[str] = field(default_factory=list)
    applied: list[AppliedAction] = field(default_factory=list)
    write_backs: list[WriteBack] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.applied)

    def extend(self, other: AttuneReport) -> None:
        self.attuned.extend(other.attuned)
        self.skipped.extend(other.skipped)
        self.installed_package_managers.extend(other.installed_package_managers)
        self.applied.extend(other.applied)
        self.write_backs.extend(other.write_backs)

    def to_dict(self) -> dict:
        return {
            "attuned": list(self.attuned),
            "skipped": list(self.skipped),
            "installed_package_managers": list(self.installed_package_managers),
            "total_actions": self.total_actions,
            "applied": [a.to_dict() for a in self.applied],
            "write_backs": [w.to_dict() for w in self.write_backs],
        }


# ── Planning ────────────────────────────────────────────────────


def _by_name(names: set[str]) -> list[str]:
    return sorted(names, key=lambda n: (n.lower(), n))


def plan_actions(
    installed: Mapping[str, Version],
    desired: Mapping[str, Version],
) -> list[PackageAction]:
    """Diff installed against desired packages.

    Returns all updates, then all installs, then all uninstalls. Within
    a phase, packages are ordered case-insensitively by name. An empty
    desired version means "latest".
    """
    actions: list[PackageAction] = []

    for name in _by_name(set(installed) & set(desired)):
        if installed[name].is_less_than(desired[name]):
            actions.append(PackageAction.update(name, desired[name] or None))

    for name in _by_name(set(desired) - set(installed)):
        actions.append(PackageAction.install(name, desired[name] or None))

    for name in _by_name(set(installed) - set(desired)):
        actions.append(PackageAction.uninstall(name))

    return actions


# ── Applying ────────────────────────────────────────────────────


def _say(output: IO[str] | None, message: str) -> None:
    click.echo(message, file=output)


def _write_back(
    config_service: ConfigService,
    package_manager_name: str,
    package_name: str,
    new_version: Version,
) -> None:
    config = config_service.get_config()
    config.update_package(package_manager_name, package_name, new_version)
    config_service.set_config(config)


def _ensure_package_manager(
    package_manager: PackageManager,
    report: AttuneReport,
    output: IO[str] | None,
) -> None:
    if not package_manager.is_installed():
        package_manager.install()
        report.installed_package_managers.append(package_manager.name)
    else:
        _say(output, f'Package manager "{package_manager.name}" is already installed.')
        package_manager.update()


def attune_package_manager(
    package_manager: PackageManager,
    configured: ConfiguredPackageManager,
    config_service: ConfigService,
    output: IO[str] | None = None,
) -> AttuneReport:
    """Reconcile one package manager with its configured packages.

    Raises:
        FamiliarError: On the first failed operation; earlier work is kept.
    """
    report = AttuneReport()
    name = package_manager.name

    if not package_manager.is_supported():
        logger.info("Skipping %s: not supported on this operating system", name)
        report.skipped.append(name)
        return report

    _ensure_package_manager(package_manager, report, output)

    installed_packages = package_manager.installed_packages()
    if installed_packages:
        _say(output, f"Packages currently installed with {name}:")
        for package in installed_packages:
            _say(output, f"- {package.name}, version {package.installed_version}")
    else:
        _say(output, f"No packages are currently installed with {name}.")

    if configured.packages:
        _say(output, f"Packages configured to be installed with {name}:")
        for configured_package in configured.packages:
            _say(output, f"- {configured_package.name}, version {configured_package.version}")

    installed = {p.name: p.installed_version for p in installed_packages}
    desired = configured.desired_versions()

    actions = plan_actions(installed, desired)
    logger.info(
        "%s: %d action(s) planned: %s",
        name,
        len(actions),
        ", ".join(a.describe() for a in actions) or "none",
    )

    for action in actions:
        if action.kind == ActionKind.UNINSTALL:
            package_manager.uninstall_package(action.package_name)
            report.applied.append(AppliedAction(name, action))
            continue

        if action.kind == ActionKind.UPDATE:
            obtained = package_manager.update_package(action.package_name, action.version)
        else:
            obtained = package_manager.install_package(action.package_name, action.version)
        report.applied.append(AppliedAction(name, action, obtained))

        desired_version = desired[action.package_name]
        if obtained.is_greater_than(desired_version):
            logger.info(
                "Recording %s %s in config (was %r)",
                action.package_name,
                obtained,
                str(desired_version),
            )
            _write_back(config_service, name, action.package_name, obtained)
            report.write_backs.append(
                WriteBack(name, action.package_name, desired_version, obtained)
            )

    report.attuned.append(name)
    return report


def attune(
    registry: PackageManagerRegistry,
    config_service: ConfigService,
    output: IO[str] | None = None,
) -> AttuneReport:
    """Reconcile every package manager in the config document, in order.

    Raises:
        PackageManagerNotFoundError: If the document names an unknown manager.
        FamiliarError: On the first failed operation.
    """
    config = config_service.get_config()
    report = AttuneReport()

    for configured in config.package_managers:
        package_manager = registry.get(configured.name)
        report.extend(
            attune_package_manager(package_manager, configured, config_service, output)
        )

    logger.info(
        "Attune finished: %d action(s), %d config update(s)",
        report.total_actions,
        len(report.write_backs),
    )
    return report
