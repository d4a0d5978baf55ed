"""Shell adapters — process execution and OS probing."""

from familiar.adapters.shell.command import (
    CommandFailedError,
    CommandLaunchError,
    CommandNotFoundError,
    CommandOutputError,
    ShellCommandError,
    ShellCommandService,
    run,
)
from familiar.adapters.shell.operating_system import OperatingSystem, OperatingSystemService

__all__ = [
    "CommandFailedError",
    "CommandLaunchError",
    "CommandNotFoundError",
    "CommandOutputError",
    "OperatingSystem",
    "OperatingSystemService",
    "ShellCommandError",
    "ShellCommandService",
    "run",
]
