"""Adapters — package manager bindings and the processes they drive.

Public re-exports for convenient access.
"""

from familiar.adapters.base import PackageManager, PackageManagerError
from familiar.adapters.mock import MockPackageManager
from familiar.adapters.registry import (
    PackageManagerNotFoundError,
    PackageManagerRegistry,
    RegistryInvariantError,
)

__all__ = [
    "MockPackageManager",
    "PackageManager",
    "PackageManagerError",
    "PackageManagerNotFoundError",
    "PackageManagerRegistry",
    "RegistryInvariantError",
]
