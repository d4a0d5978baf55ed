"""
Config document model — the declarative desired state.

Loaded from the shared YAML config file. This is the canonical truth
about which package managers and packages should be present on every
machine that shares the file. The attune engine reads it and writes
back version drift; the ``package`` commands edit it.

Package managers and packages are kept ordered by name so the file
diffs cleanly between machines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from familiar.core.errors import FamiliarError
from familiar.core.models.version import Version, VersionLike

if TYPE_CHECKING:
    from familiar.adapters.registry import PackageManagerRegistry

CONFIG_DOCUMENT_VERSION = 1


class ConfigError(FamiliarError):
    """Raised when the config document or its location is invalid."""


class PackageManagerNotPresentError(ConfigError):
    def __init__(self) -> None:
        super().__init__("package manager not present")


class PackageNotPresentError(ConfigError):
    def __init__(self) -> None:
        super().__init__("package not present")


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConfiguredOperatingSystem(_DocumentModel):
    """An OS that a configured file or script applies to."""

    name: str
    destination_path: str | None = Field(default=None, alias="destinationPath")


class ConfiguredFile(_DocumentModel):
    """A file managed by Familiar."""

    source_path: str = Field(alias="sourcePath")
    destination_path: str | None = Field(default=None, alias="destinationPath")
    operating_systems: list[ConfiguredOperatingSystem] | None = Field(
        default=None, alias="operatingSystems"
    )


class ConfiguredScript(_DocumentModel):
    """A script managed by Familiar."""

    source_path: str = Field(alias="sourcePath")
    operating_systems: list[ConfiguredOperatingSystem] | None = Field(
        default=None, alias="operatingSystems"
    )


class ConfiguredPackage(_DocumentModel):
    """A package pinned at a version under one package manager."""

    name: str
    version: str = ""

    @field_validator("version", mode="before")
    @classmethod
    def version_as_string(cls, value: object) -> object:
        # Hand-written YAML turns `version: 1.5` into a float
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def desired_version(self) -> Version:
        return Version(self.version)


class ConfiguredPackageManager(_DocumentModel):
    """A package manager and the packages it should provide."""

    name: str
    packages: list[ConfiguredPackage] = Field(default_factory=list)

    def get_package(self, package_name: str) -> ConfiguredPackage | None:
        for package in self.packages:
            if package.name == package_name:
                return package
        return None

    def desired_versions(self) -> dict[str, Version]:
        """Map of package name to desired version."""
        return {p.name: p.desired_version for p in self.packages}


class Config(_DocumentModel):
    """Root of the shared config document."""

    version: int = CONFIG_DOCUMENT_VERSION
    files: list[ConfiguredFile] = Field(default_factory=list)
    scripts: list[ConfiguredScript] = Field(default_factory=list)
    package_managers: list[ConfiguredPackageManager] = Field(
        default_factory=list, alias="packageManagers"
    )

    # ── Lookup ──────────────────────────────────────────────────

    def get_package_manager(self, package_manager_name: str) -> ConfiguredPackageManager | None:
        for package_manager in self.package_managers:
            if package_manager.name == package_manager_name:
                return package_manager
        return None

    def desired_versions(self, package_manager_name: str) -> dict[str, Version]:
        """Desired package versions for a manager (empty if not configured)."""
        package_manager = self.get_package_manager(package_manager_name)
        if package_manager is None:
            return {}
        return package_manager.desired_versions()

    def _require_package_manager(self, package_manager_name: str) -> ConfiguredPackageManager:
        package_manager = self.get_package_manager(package_manager_name)
        if package_manager is None:
            raise PackageManagerNotPresentError()
        return package_manager

    # ── Mutation ────────────────────────────────────────────────

    def add_package_manager(
        self,
        package_manager_name: str,
        registry: PackageManagerRegistry,
    ) -> None:
        """Add a package manager, keeping the list ordered by name.

        Raises:
            ConfigError: If the name is not a known package manager, or is
                already in the document.
        """
        if package_manager_name not in registry:
            raise ConfigError("package manager not valid")

        if self.get_package_manager(package_manager_name) is not None:
            raise ConfigError("package manager already present")

        self.package_managers.append(ConfiguredPackageManager(name=package_manager_name))
        self.package_managers.sort(key=lambda pm: pm.name)

    def remove_package_manager(self, package_manager_name: str) -> None:
        """Remove a package manager and all of its packages."""
        remaining = [pm for pm in self.package_managers if pm.name != package_manager_name]
        if len(remaining) == len(self.package_managers):
            raise PackageManagerNotPresentError()
        self.package_managers = remaining

    def add_package(
        self,
        package_manager_name: str,
        package_name: str,
        package_version: VersionLike,
    ) -> None:
        """Add a package under a package manager, keeping packages ordered by name."""
        package_manager = self._require_package_manager(package_manager_name)

        if package_manager.get_package(package_name) is not None:
            raise ConfigError("package already present")

        package_manager.packages.append(
            ConfiguredPackage(name=package_name, version=str(package_version))
        )
        package_manager.packages.sort(key=lambda p: p.name)

    def update_package(
        self,
        package_manager_name: str,
        package_name: str,
        package_version: VersionLike,
    ) -> None:
        """Set the configured version of a package.

        Raises:
            ConfigError: If the manager or package is missing, or the package
                is already set to the given version string.
        """
        package_manager = self._require_package_manager(package_manager_name)

        package = package_manager.get_package(package_name)
        if package is None:
            raise PackageNotPresentError()

        if package.version == str(package_version):
            raise ConfigError("package already set to given version")

        package.version = str(package_version)

    def remove_package(self, package_manager_name: str, package_name: str) -> None:
        """Remove a package from under a package manager."""
        package_manager = self._require_package_manager(package_manager_name)

        remaining = [p for p in package_manager.packages if p.name != package_name]
        if len(remaining) == len(package_manager.packages):
            raise PackageNotPresentError()
        package_manager.packages = remaining

    # ── Serialization ───────────────────────────────────────────

    def to_yaml_data(self) -> dict:
        """Plain data in the on-disk shape (camelCase keys, no empty optionals)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def yaml_string(self) -> str:
        """The document as a YAML string, without trailing whitespace."""
        return yaml.safe_dump(
            self.to_yaml_data(),
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        ).strip()
