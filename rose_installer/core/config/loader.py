"""
Configuration loader — reads rose-install.yml into InstallerConfig.

The file is optional: with no file every setting takes its default.
It reads YAML, validates against the Pydantic schema, and returns a
typed config object.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from rose_installer.core.models.config import InstallerConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "rose-install.yml"


class ConfigError(Exception):
    """Raised when the installer configuration is invalid."""

    exit_code = 1


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for rose-install.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to rose-install.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> InstallerConfig:
    """Load and validate installer configuration.

    Args:
        path: Explicit path to rose-install.yml. If None, searches upward
            and falls back to defaults when nothing is found.

    Returns:
        Validated InstallerConfig.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
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

    # Accept the settings either flat or under a "rose" key
    settings = data.get("rose", data)

    try:
        config = InstallerConfig.model_validate(settings)
    except Exception as e:
        raise ConfigError(f"Invalid installer configuration: {e}") from e

    # Relative workspace roots are relative to the config file
    if config.workspace_root and not Path(config.workspace_root).is_absolute():
        config.workspace_root = str((path.parent / config.workspace_root).resolve())

    return config
