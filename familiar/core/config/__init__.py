"""Shared config document location and persistence."""

from familiar.core.config.loader import (
    ConfigLocationNotSetError,
    ConfigService,
    xdg_config_home,
)
from familiar.core.models.config import ConfigError

__all__ = [
    "ConfigError",
    "ConfigLocationNotSetError",
    "ConfigService",
    "xdg_config_home",
]
