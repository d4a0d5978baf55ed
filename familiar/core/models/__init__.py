"""
Domain models for Familiar.

All models are re-exported here for convenient access:

    from familiar.core.models import Config, Package, PackageAction, Version
"""

from familiar.core.models.action import ActionKind, PackageAction
from familiar.core.models.config import (
    Config,
    ConfigError,
    ConfiguredFile,
    ConfiguredOperatingSystem,
    ConfiguredPackage,
    ConfiguredPackageManager,
    ConfiguredScript,
)
from familiar.core.models.package import Package, sort_packages
from familiar.core.models.version import Version, compare_version_strings

__all__ = [
    # action.py
    "ActionKind",
    # config.py
    "Config",
    "ConfigError",
    "ConfiguredFile",
    "ConfiguredOperatingSystem",
    "ConfiguredPackage",
    "ConfiguredPackageManager",
    "ConfiguredScript",
    # package.py
    "Package",
    "PackageAction",
    # version.py
    "Version",
    "compare_version_strings",
    "sort_packages",
]
