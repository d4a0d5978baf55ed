"""
Package manager registry — the fixed set of supported package managers.

The registry is built once at process start from a fixed list and is
read-only afterwards. It is passed explicitly to whatever needs it;
there is no module-level registry.

Construction validates that the set is complete and well ordered. A
broken registry is a packaging fault, not a user error, so it raises
RegistryInvariantError, which nothing in the program catches.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from familiar.adapters.base import PackageManager
from familiar.core.errors import FamiliarError

logger = logging.getLogger(__name__)

# Every build of Familiar ships exactly these package managers.
EXPECTED_PACKAGE_MANAGERS: frozenset[str] = frozenset({"scoop", "chocolatey", "homebrew"})


class RegistryInvariantError(RuntimeError):
    """The registry's fixed set of package managers is malformed."""


class PackageManagerNotFoundError(FamiliarError):
    def __init__(self, package_manager_name: str = "") -> None:
        super().__init__("package manager not valid")
        self.package_manager_name = package_manager_name


class PackageManagerRegistry:
    """Name-indexed, validated collection of package managers."""

    def __init__(
        self,
        package_managers: Iterable[PackageManager],
        expected_names: Iterable[str] = EXPECTED_PACKAGE_MANAGERS,
    ) -> None:
        self._package_managers: dict[str, PackageManager] = {}
        for package_manager in package_managers:
            name = package_manager.name
            if name in self._package_managers:
                raise RegistryInvariantError(f"Duplicate package manager: {name}")
            self._package_managers[name] = package_manager

        self._validate(frozenset(expected_names))
        logger.debug("Registered package managers: %s", ", ".join(self.names()))

    def _validate(self, expected_names: frozenset[str]) -> None:
        names = set(self._package_managers)

        missing = expected_names - names
        if missing:
            raise RegistryInvariantError(
                f"Missing package managers: {', '.join(sorted(missing))}"
            )

        unexpected = names - expected_names
        if unexpected:
            raise RegistryInvariantError(
                f"Unexpected package managers: {', '.join(sorted(unexpected))}"
            )

        count = len(self._package_managers)
        seen: dict[int, str] = {}
        for name, package_manager in self._package_managers.items():
            order = package_manager.order
            if not 1 <= order <= count:
                raise RegistryInvariantError(
                    f"Package manager '{name}' has order {order}, expected 1..{count}"
                )
            if order in seen:
                raise RegistryInvariantError(
                    f"Package managers '{seen[order]}' and '{name}' share order {order}"
                )
            seen[order] = name

    def get_all(self) -> list[PackageManager]:
        """All package managers, sorted by their fixed order."""
        return sorted(self._package_managers.values(), key=lambda pm: pm.order)

    def get(self, package_manager_name: str) -> PackageManager:
        """Look up a package manager by name.

        Raises:
            PackageManagerNotFoundError: If the name is not registered.
        """
        package_manager = self._package_managers.get(package_manager_name)
        if package_manager is None:
            raise PackageManagerNotFoundError(package_manager_name)
        return package_manager

    def names(self) -> list[str]:
        """Registered names, in order."""
        return [pm.name for pm in self.get_all()]

    def __contains__(self, package_manager_name: object) -> bool:
        return package_manager_name in self._package_managers

    def __iter__(self) -> Iterator[PackageManager]:
        return iter(self.get_all())

    def __len__(self) -> int:
        return len(self._package_managers)
