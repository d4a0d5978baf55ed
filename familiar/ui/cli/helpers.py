"""Shared plumbing for the CLI command groups."""

from __future__ import annotations

import logging
import sys
from typing import NoReturn

import click

from familiar.adapters.registry import PackageManagerRegistry
from familiar.core.config.loader import ConfigService

logger = logging.getLogger(__name__)


def services(ctx: click.Context) -> tuple[PackageManagerRegistry, ConfigService]:
    """The registry and config service set up by the ``familiar`` group."""
    return ctx.obj["registry"], ctx.obj["config_service"]


def fail(error: Exception) -> NoReturn:
    """Report a user-facing error and exit with status 1."""
    logger.debug("Command failed", exc_info=error)
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(1)
