"""
CLI commands for package management.

Thin wrappers over ``familiar.core.use_cases.packages``.
"""

from __future__ import annotations

import io
import json

import click

from familiar.core.errors import FamiliarError
from familiar.core.use_cases import packages as use_cases
from familiar.ui.cli.helpers import fail, services


@click.group()
def package() -> None:
    """Packages — add, remove, update, status, import.

    Every change made here is recorded in the shared config file, so
    "familiar attune" can repeat it on your other machines.
    """


@package.command()
@click.argument("manager")
@click.argument("package_name", metavar="[PACKAGE]", required=False)
@click.pass_context
def add(ctx: click.Context, manager: str, package_name: str | None) -> None:
    """Add MANAGER to the config, or install PACKAGE with it.

    Installing a package records the version installed in the config.
    """
    registry, config_service = services(ctx)
    try:
        if package_name is None:
            use_cases.add_package_manager(registry, config_service, manager)
        else:
            use_cases.add_package(registry, config_service, manager, package_name)
    except FamiliarError as e:
        fail(e)


@package.command()
@click.argument("manager")
@click.argument("package_name", metavar="[PACKAGE]", required=False)
@click.pass_context
def remove(ctx: click.Context, manager: str, package_name: str | None) -> None:
    """Remove MANAGER from the config, or uninstall PACKAGE and remove it."""
    registry, config_service = services(ctx)
    try:
        if package_name is None:
            use_cases.remove_package_manager(config_service, manager)
        else:
            use_cases.remove_package(registry, config_service, manager, package_name)
    except FamiliarError as e:
        fail(e)


@package.command()
@click.argument("manager", required=False)
@click.argument("package_name", metavar="[PACKAGE]", required=False)
@click.pass_context
def update(ctx: click.Context, manager: str | None, package_name: str | None) -> None:
    """Update outdated packages: all of them, those of MANAGER, or just PACKAGE.

    Configured versions are raised when the update installed a newer one.
    """
    registry, config_service = services(ctx)
    try:
        if manager is None:
            use_cases.update_packages(registry, config_service)
        elif package_name is None:
            use_cases.update_packages_for_package_manager(registry, config_service, manager)
        else:
            use_cases.update_package(registry, config_service, manager, package_name)
    except FamiliarError as e:
        fail(e)


@package.command()
@click.argument("manager", required=False)
@click.argument("package_name", metavar="[PACKAGE]", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(
    ctx: click.Context, manager: str | None, package_name: str | None, as_json: bool
) -> None:
    """Show configured, installed and newer versions of packages."""
    registry, config_service = services(ctx)
    # With --json the progress lines are dropped so stdout is pure JSON
    output = io.StringIO() if as_json else None
    try:
        if manager is None:
            result = use_cases.status(registry, config_service, output)
            data = {name: [s.to_dict() for s in rows] for name, rows in result.items()}
        elif package_name is None:
            rows = use_cases.status_for_package_manager(registry, config_service, manager, output)
            data = [s.to_dict() for s in rows]
        else:
            data = use_cases.status_for_package(
                registry, config_service, manager, package_name, output
            ).to_dict()
    except FamiliarError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(data, indent=2))


@package.command("import")
@click.argument("manager", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def import_(ctx: click.Context, manager: str | None, as_json: bool) -> None:
    """Record installed packages in the config: from all managers, or MANAGER.

    Packages missing from the config are added. Configured versions
    higher than the installed one are lowered to match.
    """
    registry, config_service = services(ctx)
    output = io.StringIO() if as_json else None
    try:
        if manager is None:
            results = use_cases.import_packages(registry, config_service, output)
        else:
            results = [
                use_cases.import_packages_from_package_manager(
                    registry, config_service, manager, output
                )
            ]
    except FamiliarError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
