"""
Configuration loader — reads install.yml into InstallerConfig.

The file is optional. Resolution order:
    HOSTPROV_CONFIG env var  >  /etc/hostprov/install.yml  >  built-in defaults

It reads YAML, validates against the Pydantic schema, and returns
a typed config object.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from hostprov.core.errors import HostprovError
from hostprov.core.models.config import InstallerConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HOSTPROV_CONFIG"
DEFAULT_CONFIG_PATH = Path("/etc/hostprov/install.yml")


class ConfigError(HostprovError):
    """Raised when installer configuration is invalid or unreadable."""


def find_config_file() -> Path | None:
    """Locate the config file, or None to use defaults.

    An explicit ``HOSTPROV_CONFIG`` is returned even if it does not
    exist, so that ``load_config`` can report the typo.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    if DEFAULT_CONFIG_PATH.is_file():
        return DEFAULT_CONFIG_PATH
    return None


def load_config(path: Path | None = None) -> InstallerConfig:
    """Load and validate installer configuration.

    Args:
        path: Explicit path to install.yml. If None, uses ``find_config_file``.

    Returns:
        Validated InstallerConfig (defaults when no file is configured).

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        logger.debug("No config file, using defaults")
        return InstallerConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading installer config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return InstallerConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = InstallerConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid installer configuration: {e}") from e

    logger.info("Loaded installer config from %s", path)
    return config
