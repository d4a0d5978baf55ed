"""
Package model — one package as reported live by a package manager.

Packages are created fresh on every query and never mutated. They
are not persisted; the config document records desired state only.
"""

from __future__ import annotations

from dataclasses import dataclass

from familiar.core.models.version import Version


@dataclass(frozen=True)
class Package:
    """A package tracked by a package manager.

    ``latest_version`` is ``None`` when the manager cannot tell whether
    a newer version exists.
    """

    name: str
    installed_version: Version
    latest_version: Version | None = None

    @classmethod
    def from_strings(
        cls,
        name: str,
        installed_version: str,
        latest_version: str | None = None,
    ) -> Package:
        return cls(
            name=name,
            installed_version=Version(installed_version),
            latest_version=Version(latest_version) if latest_version is not None else None,
        )

    @property
    def has_update(self) -> bool:
        """Whether a newer version than the installed one is available."""
        return (
            self.latest_version is not None
            and self.latest_version.is_greater_than(self.installed_version)
        )


def sort_packages(packages: list[Package]) -> list[Package]:
    """Sort packages by name, case-insensitively."""
    return sorted(packages, key=lambda p: (p.name.lower(), p.name))
