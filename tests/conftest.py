"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from familiar.adapters.mock import MockPackageManager
from familiar.adapters.registry import PackageManagerRegistry
from familiar.adapters.shell.command import CommandFailedError, extract_result, format_command
from familiar.core.config.loader import ConfigService


class FakeShellCommandService:
    """Stands in for ShellCommandService with canned output per command.

    A command is identified by program, arguments and whether its
    output is echoed. Unknown commands fail like a non-zero exit; the
    result pattern is applied to the canned output like the real runner.
    """

    def __init__(self) -> None:
        self._outputs: dict[tuple, str] = {}
        self._errors: dict[tuple, Exception] = {}
        self.calls: list[tuple] = []

    @staticmethod
    def _key(program: str, args: tuple[str, ...], print_output: bool) -> tuple:
        return (program, tuple(args), print_output)

    def set_output(self, output: str, program: str, *args: str, print_output: bool = False) -> None:
        self._outputs[self._key(program, args, print_output)] = output

    def set_error(
        self, error: Exception, program: str, *args: str, print_output: bool = False
    ) -> None:
        self._errors[self._key(program, args, print_output)] = error

    def was_called_with(self, program: str, *args: str, print_output: bool = False) -> bool:
        return self._key(program, args, print_output) in self.calls

    def run(self, program, *args, result_pattern=None, print_output=False) -> str:
        key = self._key(program, args, print_output)
        self.calls.append(key)
        if key in self._errors:
            raise self._errors[key]
        if key not in self._outputs:
            raise CommandFailedError(format_command(program, args), 1)
        return extract_result(self._outputs[key], result_pattern)


@pytest.fixture
def fake_shell() -> FakeShellCommandService:
    return FakeShellCommandService()


@pytest.fixture
def output() -> io.StringIO:
    """Stream that package managers and use cases write progress to."""
    return io.StringIO()


@pytest.fixture
def config_home(tmp_path: Path, monkeypatch) -> Path:
    """An isolated XDG config home."""
    home = tmp_path / "xdg"
    home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    return home


@pytest.fixture
def config_service(config_home: Path) -> ConfigService:
    return ConfigService()


@pytest.fixture
def config_path(tmp_path: Path, config_service: ConfigService) -> Path:
    """Location of the shared config file, already registered (file not created)."""
    path = tmp_path / "shared" / "familiar.yml"
    path.parent.mkdir()
    config_service.set_config_location(path)
    return path


def make_registry(*package_managers: MockPackageManager) -> PackageManagerRegistry:
    """A registry that expects exactly the given managers."""
    return PackageManagerRegistry(
        package_managers,
        expected_names={pm.name for pm in package_managers},
    )


@pytest.fixture
def registry_factory():
    return make_registry
