"""
CLI commands for the shared config file.

Thin wrappers over ``familiar.core.config.loader.ConfigService``.
"""

from __future__ import annotations

import json

import click

from familiar.core.errors import FamiliarError
from familiar.ui.cli.helpers import fail, services


@click.group()
def config() -> None:
    """Config — where the shared config file lives, and what it says.

    The config file is a YAML document shared between machines (for
    example through a synced folder). Each machine remembers its
    location separately; set it with "familiar config location <path>".
    The path must end in ".yml" or ".yaml" and its directory must exist.
    The file is created on first use if it does not exist yet.
    """


@config.command()
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.pass_context
def location(ctx: click.Context, path: str | None) -> None:
    """Print the config file location, or set it to PATH."""
    _, config_service = services(ctx)
    try:
        if path is None:
            click.echo(str(config_service.get_config_location()))
            return
        stored = config_service.set_config_location(path)
    except FamiliarError as e:
        fail(e)

    click.echo(f'The config file location has been set to "{stored}".')


@config.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Print the contents of the config file."""
    _, config_service = services(ctx)
    try:
        document = config_service.get_config()
    except FamiliarError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(document.to_yaml_data(), indent=2))
        return
    click.echo(document.yaml_string())
