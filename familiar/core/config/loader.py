"""
Config service — locates, reads and writes the shared config document.

The document itself lives wherever the user keeps it (typically a
synced folder). Its location is remembered per machine in a small
pointer file under the XDG config home:

    $XDG_CONFIG_HOME/io.colececil.familiar/config_location

Reads validate the YAML against the pydantic models in
``familiar.core.models.config``. Writes are atomic (temp file, then
rename) and always rewrite the whole document.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from familiar.core.models.config import Config, ConfigError

logger = logging.getLogger(__name__)

APP_DIRECTORY_NAME = "io.colececil.familiar"
CONFIG_LOCATION_FILE_NAME = "config_location"
VALID_EXTENSIONS = (".yml", ".yaml")

CONFIG_LOCATION_NOT_SET_MESSAGE = (
    "The location of Familiar's shared config file has not yet been set. Please set it "
    'using "familiar config location <path>", for more details, execute "familiar help config".'
)


class _DocumentLoader(yaml.SafeLoader):
    """SafeLoader that keeps numeric scalars as written, so `1.10` stays "1.10"."""


def _scalar_text(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


_DocumentLoader.add_constructor("tag:yaml.org,2002:int", _scalar_text)
_DocumentLoader.add_constructor("tag:yaml.org,2002:float", _scalar_text)


def load_document(text: str) -> object:
    """Parse config YAML without converting numbers (pydantic types the fields)."""
    return yaml.load(text, Loader=_DocumentLoader)


class ConfigLocationNotSetError(ConfigError):
    def __init__(self) -> None:
        super().__init__(CONFIG_LOCATION_NOT_SET_MESSAGE)


def xdg_config_home(environ: Mapping[str, str] | None = None) -> Path:
    """``$XDG_CONFIG_HOME``, or ``~/.config`` when unset or empty."""
    env = os.environ if environ is None else environ
    value = env.get("XDG_CONFIG_HOME")
    if value:
        return Path(value)
    return Path.home() / ".config"


class ConfigService:
    """Reads and writes the shared config document.

    Args:
        config_home: Directory holding Familiar's pointer file.
            Defaults to the XDG config home at call time.
    """

    def __init__(self, config_home: Path | None = None) -> None:
        self._config_home = config_home

    @property
    def location_file(self) -> Path:
        home = self._config_home if self._config_home is not None else xdg_config_home()
        return home / APP_DIRECTORY_NAME / CONFIG_LOCATION_FILE_NAME

    # ── Location ────────────────────────────────────────────────

    def get_config_location(self) -> Path:
        """Where the shared config document lives.

        Raises:
            ConfigLocationNotSetError: If no location has been set yet.
        """
        try:
            raw = self.location_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.debug("Cannot read %s: %s", self.location_file, e)
            raise ConfigLocationNotSetError() from e

        location = raw.strip()
        if not location:
            raise ConfigLocationNotSetError()
        return Path(location)

    def set_config_location(self, path: str | Path) -> Path:
        """Remember ``path`` as the shared config document's location.

        Returns:
            The absolute path that was stored.

        Raises:
            ConfigError: If the path is not a YAML file in an existing directory.
        """
        absolute_path = Path(os.path.abspath(os.path.expanduser(str(path))))

        extension = absolute_path.suffix
        if extension not in VALID_EXTENSIONS:
            raise ConfigError(
                f"invalid file extension '{extension}': expected '.yml' or '.yaml'"
            )

        directory = absolute_path.parent
        if not directory.is_dir():
            raise ConfigError(f"directory '{directory}' does not exist")

        location_file = self.location_file
        location_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        _atomic_write(location_file, f"{absolute_path}\n")
        logger.info("Config location set to %s", absolute_path)
        return absolute_path

    # ── Document ────────────────────────────────────────────────

    def get_config(self) -> Config:
        """Load the config document, creating an empty one if the file is missing.

        Raises:
            ConfigLocationNotSetError: If no location has been set.
            ConfigError: If the file cannot be read or is not a valid document.
        """
        path = self.get_config_location()

        if not path.is_file():
            logger.info("No config file at %s, creating a new one", path)
            config = Config()
            self.set_config(config)
            return config

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            data = load_document(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return Config()
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

        try:
            config = Config.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e

        logger.debug(
            "Loaded config from %s (%d package managers)", path, len(config.package_managers)
        )
        return config

    def set_config(self, config: Config) -> None:
        """Write the whole config document to its location (atomic).

        Raises:
            ConfigLocationNotSetError: If no location has been set.
            ConfigError: If the file cannot be written.
        """
        path = self.get_config_location()
        content = config.yaml_string() + "\n"
        try:
            _atomic_write(path, content)
        except OSError as e:
            raise ConfigError(f"Cannot write {path}: {e}") from e
        logger.debug("Config saved to %s", path)


def _atomic_write(path: Path, content: str) -> None:
    """Write to a temp file in the same directory, then rename over ``path``."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
