"""
Configuration loader — reads provision.yml into a ProvisionConfig.

The pipeline only ever sees a ConfigSource. The YAML implementation
below is the one the CLI uses; tests can hand in any object with a
``load()`` method.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import yaml
from pydantic import ValidationError

from macprovision.core.errors import ConfigError
from macprovision.core.models.config import ProvisionConfig

logger = logging.getLogger(__name__)

# Default config filename
PROVISION_CONFIG_FILE = "provision.yml"


class ConfigSource(Protocol):
    """Supplies the provisioning configuration before the run starts."""

    def load(self) -> ProvisionConfig: ...


class StaticConfigSource:
    """A ConfigSource wrapping an already-built config."""

    def __init__(self, config: ProvisionConfig):
        self._config = config

    def load(self) -> ProvisionConfig:
        return self._config


class YamlConfigSource:
    """ConfigSource backed by a provision.yml file.

    Relative ``brewfile`` paths are resolved against the config file's
    directory.
    """

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path | None:
        return self._path

    def load(self) -> ProvisionConfig:
        path = self._path or find_config_file()
        if path is None:
            raise ConfigError(
                f"No {PROVISION_CONFIG_FILE} found. "
                "Create one next to the Brewfile, or specify --config."
            )
        self._path = path
        return load_config(path)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for provision.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to provision.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROVISION_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path) -> ProvisionConfig:
    """Load and validate provisioning configuration.

    Args:
        path: Path to provision.yml.

    Returns:
        Validated ProvisionConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading provision config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = ProvisionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid provision configuration: {e}") from e

    if config.brewfile and not Path(config.brewfile).is_absolute():
        config = config.model_copy(
            update={"brewfile": str((path.parent / config.brewfile).resolve())}
        )

    logger.info(
        "Loaded config: %d formulae, %d casks, %d settings, %d extras",
        len(config.formulae),
        len(config.casks),
        len(config.settings),
        len(config.extras),
    )
    return config
