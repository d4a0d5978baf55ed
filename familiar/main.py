"""
Familiar — CLI entrypoint.

Usage:
    familiar --help
    familiar config location ~/Sync/familiar.yml
    familiar package add scoop
    familiar attune
"""

from __future__ import annotations

import json

import click

from familiar import __version__
from familiar.adapters.package_managers import default_package_managers
from familiar.adapters.registry import PackageManagerRegistry
from familiar.adapters.shell.command import ShellCommandService
from familiar.adapters.shell.operating_system import OperatingSystemService
from familiar.core.config.loader import ConfigService
from familiar.core.errors import FamiliarError
from familiar.core.observability.logging_config import setup_logging_from_flags
from familiar.ui.cli.helpers import fail, services


def build_registry() -> PackageManagerRegistry:
    """The registry of every package manager Familiar ships with."""
    operating_system = OperatingSystemService()
    shell = ShellCommandService()
    return PackageManagerRegistry(default_package_managers(operating_system, shell))


@click.group()
@click.version_option(version=__version__, prog_name="familiar")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Familiar — keep the packages on every machine you use in sync."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_flags(verbose=verbose, quiet=quiet, debug=debug)

    # Tests pass their own registry and config service through ``obj``
    if "registry" not in ctx.obj:
        ctx.obj["registry"] = build_registry()
    if "config_service" not in ctx.obj:
        ctx.obj["config_service"] = ConfigService()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print a JSON summary.")
@click.pass_context
def attune(ctx: click.Context, as_json: bool) -> None:
    """Sync the current machine with the config file.

    Installs, updates and uninstalls packages until every supported
    package manager matches the shared configuration.
    """
    from familiar.core.engine.attune import attune as run_attune

    registry, config_service = services(ctx)
    try:
        report = run_attune(registry, config_service)
    except FamiliarError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not ctx.obj.get("quiet"):
        click.secho(
            f"Attune complete: {report.total_actions} package action(s), "
            f"{len(report.write_backs)} config update(s).",
            fg="green",
        )


@cli.command("help")
@click.argument("command_path", nargs=-1)
@click.pass_context
def help_command(ctx: click.Context, command_path: tuple[str, ...]) -> None:
    """Show detailed help for a command, e.g. "familiar help config"."""
    info_ctx = ctx.parent or ctx
    command: click.Command = cli
    for name in command_path:
        sub = command.get_command(info_ctx, name) if isinstance(command, click.Group) else None
        if sub is None:
            raise click.UsageError(f'Unknown command "{" ".join(command_path)}".')
        info_ctx = click.Context(sub, info_name=name, parent=info_ctx)
        command = sub
    click.echo(command.get_help(info_ctx))


# ── Register sub-command groups from familiar/ui/cli/ ───────────

from familiar.ui.cli.config import config  # noqa: E402
from familiar.ui.cli.package import package  # noqa: E402

cli.add_command(config)
cli.add_command(package)


if __name__ == "__main__":
    cli()
