"""
Reconciliation actions — what the attune engine decided to do.

Actions are transient: computed from the diff between installed and
desired state, applied in order, then discarded. They are never
persisted; only the config write-backs they cause are.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from familiar.core.models.version import Version


class ActionKind(StrEnum):
    """Reconciliation action kinds, in the order their phases run."""

    UPDATE = "update"
    INSTALL = "install"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class PackageAction:
    """One install/update/uninstall of a single package.

    ``version`` is the desired version for install and update, and
    ``None`` when the latest version should be used or for uninstall.
    """

    kind: ActionKind
    package_name: str
    version: Version | None = None

    @classmethod
    def install(cls, package_name: str, version: Version | None = None) -> PackageAction:
        return cls(ActionKind.INSTALL, package_name, version)

    @classmethod
    def update(cls, package_name: str, version: Version | None = None) -> PackageAction:
        return cls(ActionKind.UPDATE, package_name, version)

    @classmethod
    def uninstall(cls, package_name: str) -> PackageAction:
        return cls(ActionKind.UNINSTALL, package_name)

    def describe(self) -> str:
        if self.version:
            return f"{self.kind} {self.package_name} ({self.version})"
        return f"{self.kind} {self.package_name}"

    def to_dict(self) -> dict:
        return {
            "kind": str(self.kind),
            "package": self.package_name,
            "version": str(self.version) if self.version else None,
        }
