"""
Tests for the CLI commands.

Commands get mock package managers and an isolated config service
through the click context object.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from familiar import __version__
from familiar.adapters.base import PackageManagerError
from familiar.adapters.mock import MockPackageManager
from familiar.core.models.version import Version
from familiar.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def scoop():
    return MockPackageManager(name="scoop", order=1)


@pytest.fixture
def brew():
    return MockPackageManager(name="homebrew", order=2)


@pytest.fixture
def obj(registry_factory, scoop, brew, config_service):
    return {"registry": registry_factory(scoop, brew), "config_service": config_service}


@pytest.fixture
def invoke(runner, obj):
    def _invoke(*args):
        # A fresh dict per call; the group stores its flags in it
        return runner.invoke(cli, list(args), obj=dict(obj))

    return _invoke


# ── Top level ────────────────────────────────────────────────────────


class TestTopLevel:
    def test_help(self, invoke):
        result = invoke("--help")
        assert result.exit_code == 0
        for command in ("attune", "config", "package", "help"):
            assert command in result.output

    def test_version(self, invoke):
        result = invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_command(self, invoke):
        result = invoke("help", "config", "location")
        assert result.exit_code == 0
        assert "Print the config file location, or set it to PATH." in result.output

    def test_help_command_without_arguments(self, invoke):
        result = invoke("help")
        assert result.exit_code == 0
        assert "keep the packages on every machine" in result.output

    def test_help_unknown_command(self, invoke):
        result = invoke("help", "nope")
        assert result.exit_code != 0
        assert 'Unknown command "nope"' in result.output

    def test_subgroup_help(self, invoke):
        result = invoke("package", "--help")
        assert result.exit_code == 0
        for command in ("add", "remove", "update", "status", "import"):
            assert command in result.output


# ── config ───────────────────────────────────────────────────────────


class TestConfigCommands:
    def test_location_not_set(self, invoke):
        result = invoke("config", "location")
        assert result.exit_code == 1
        assert "has not yet been set" in result.output

    def test_set_and_print_location(self, invoke, tmp_path):
        target = tmp_path / "familiar.yml"

        result = invoke("config", "location", str(target))
        assert result.exit_code == 0
        assert f'The config file location has been set to "{target}".' in result.output

        result = invoke("config", "location")
        assert result.exit_code == 0
        assert result.output.strip() == str(target)

    def test_set_bad_extension(self, invoke, tmp_path):
        result = invoke("config", "location", str(tmp_path / "familiar.txt"))
        assert result.exit_code == 1
        assert "invalid file extension" in result.output

    def test_show(self, invoke, config_path):
        config_path.write_text(
            "packageManagers:\n  - name: scoop\n    packages:\n      - name: git\n"
            "        version: 2.43.0\n",
            encoding="utf-8",
        )
        result = invoke("config", "show")
        assert result.exit_code == 0
        shown = yaml.safe_load(result.output)
        assert shown["packageManagers"][0]["packages"] == [{"name": "git", "version": "2.43.0"}]

    def test_show_json(self, invoke, config_path):
        result = invoke("config", "show", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output)["version"] == 1


# ── package ──────────────────────────────────────────────────────────


class TestPackageCommands:
    def test_add_manager_then_package(self, invoke, config_path, config_service, scoop):
        result = invoke("package", "add", "scoop")
        assert result.exit_code == 0
        assert "Package manager added." in result.output

        scoop.set_obtained_version("git", "2.43.0")
        result = invoke("package", "add", "scoop", "git")
        assert result.exit_code == 0
        assert 'Package "git" added, version 2.43.0.' in result.output
        assert "git" in config_service.get_config().desired_versions("scoop")

    def test_add_package_without_manager_in_config(self, invoke, config_path):
        result = invoke("package", "add", "scoop", "git")
        assert result.exit_code == 1
        assert "package manager not present" in result.output

    def test_add_unknown_manager(self, invoke, config_path):
        result = invoke("package", "add", "apt")
        assert result.exit_code == 1
        assert "package manager not valid" in result.output

    def test_remove(self, invoke, config_path, config_service):
        invoke("package", "add", "scoop")
        invoke("package", "add", "scoop", "git")

        result = invoke("package", "remove", "scoop", "git")
        assert result.exit_code == 0
        assert 'Package "git" removed.' in result.output

        result = invoke("package", "remove", "scoop")
        assert result.exit_code == 0
        assert config_service.get_config().package_managers == []

    def test_remove_failure(self, invoke, config_path):
        invoke("package", "add", "scoop")
        result = invoke("package", "remove", "scoop", "ghost")
        assert result.exit_code == 1
        assert "error uninstalling package" in result.output

    def test_update_all(self, invoke, config_path, scoop, brew):
        scoop.install_package("git", Version("2.0"))
        scoop.set_latest_version("git", "2.1")
        brew.uninstall()

        result = invoke("package", "update")

        assert result.exit_code == 0
        assert scoop.packages["git"] == "2.1"
        assert 'Skipping package manager "homebrew" because it is not installed.' in result.output

    def test_update_single_package(self, invoke, config_path, scoop):
        result = invoke("package", "update", "scoop", "git")
        assert result.exit_code == 0
        assert 'Package "git" is not installed.' in result.output

    def test_status(self, invoke, config_path, scoop):
        scoop.install_package("git", Version("2.0"))
        result = invoke("package", "status", "scoop")
        assert result.exit_code == 0
        assert 'Status of packages for package manager "scoop":' in result.output
        assert "  - Installed version: 2.0" in result.output

    def test_status_json(self, invoke, config_path, scoop):
        scoop.install_package("git", Version("2.0"))
        scoop.set_latest_version("git", "2.1")

        result = invoke("package", "status", "scoop", "--json")

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {
                "name": "git",
                "configured_version": None,
                "installed_version": "2.0",
                "newer_version": "2.1",
            }
        ]

    def test_status_json_for_all_managers(self, invoke, config_path, scoop, brew):
        brew.uninstall()
        result = invoke("package", "status", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"scoop": []}

    def test_status_unknown_manager(self, invoke, config_path):
        result = invoke("package", "status", "apt")
        assert result.exit_code == 1
        assert "package manager not valid" in result.output

    def test_import(self, invoke, config_path, config_service, brew):
        brew.install_package("wget", Version("1.21"))

        result = invoke("package", "import", "homebrew")

        assert result.exit_code == 0
        assert 'Adding package "wget"' in result.output
        assert config_service.get_config().desired_versions("homebrew") == {"wget": "1.21"}

    def test_import_json(self, invoke, config_path, brew):
        brew.install_package("wget", Version("1.21"))

        result = invoke("package", "import", "homebrew", "--json")

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"package_manager": "homebrew", "added": {"wget": "1.21"}, "lowered": {}}
        ]


# ── attune ───────────────────────────────────────────────────────────


class TestAttuneCommand:
    def test_summary(self, invoke, config_path, scoop):
        config_path.write_text(
            "packageManagers:\n  - name: scoop\n    packages:\n      - name: git\n"
            "        version: '1.0'\n",
            encoding="utf-8",
        )

        result = invoke("attune")

        assert result.exit_code == 0, result.output
        assert "Attune complete: 1 package action(s), 0 config update(s)." in result.output
        assert scoop.packages == {"git": "1.0"}

    def test_quiet_has_no_summary(self, invoke, config_path):
        result = invoke("--quiet", "attune")
        assert result.exit_code == 0
        assert "Attune complete" not in result.output

    def test_json(self, invoke, config_path, scoop):
        invoke("package", "add", "scoop")
        scoop.install_package("stale", Version("1.0"))

        result = invoke("attune", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output[result.output.index("{"):])
        assert data["attuned"] == ["scoop"]
        assert data["applied"][0]["kind"] == "uninstall"

    def test_failure_exits_with_one(self, invoke, config_path, scoop):
        invoke("package", "add", "scoop")
        scoop.set_failure("update", PackageManagerError("boom"))

        result = invoke("attune")

        assert result.exit_code == 1
        assert "boom" in result.output

    def test_without_config_location(self, invoke):
        result = invoke("attune")
        assert result.exit_code == 1
        assert "familiar config location" in result.output
