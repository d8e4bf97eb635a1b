"""Load routing configuration from YAML files."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from ..models import Configuration, FileExtension, DEFAULT_IGNORE_PATTERNS

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = Path("~/.config/frouter/config.yaml").expanduser()

ENABLED_SUFFIX = "_enabled"


def load_config(config_path: Path) -> Configuration:
    """
    Load the routing configuration from a YAML file.

    Expected format:

    ```yaml
    directories:
      downloads: ~/Downloads
      desktop: ~/Desktop
      desktop_enabled: false

    extensions:
      - name: pdf
        path: ~/Downloads/PDF
        enabled: true
      - name: jpg
        path: ~/Downloads/IMAGES/JPG
        enabled: true

    ignore_patterns:
      - "*.part"
    ```

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        A new Configuration

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(config_path, f"cannot read file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(config_path, f"invalid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(config_path, "top level must be a mapping")

    ignore_patterns = data.get("ignore_patterns", DEFAULT_IGNORE_PATTERNS)
    if not isinstance(ignore_patterns, (list, tuple)):
        raise ConfigError(config_path, "'ignore_patterns' must be a list")

    try:
        config = Configuration(
            directories=_parse_directories(data.get("directories") or {}),
            extensions=tuple(_parse_extensions(data.get("extensions") or [])),
            ignore_patterns=tuple(str(p) for p in ignore_patterns),
        )
    except (TypeError, ValueError, ValidationError) as e:
        raise ConfigError(config_path, str(e)) from e

    logger.info(
        f"Loaded configuration from {config_path}: "
        f"{len(config.directories)} directories, {len(config.extensions)} extensions"
    )
    return config


def expand_path(value: Any) -> Path:
    """Expand user home and environment variables into an absolute path."""
    if not isinstance(value, (str, os.PathLike)):
        raise TypeError(f"expected a path string, got {type(value).__name__}")
    path = Path(value).expanduser()
    return Path(os.path.expandvars(str(path))).absolute()


def _parse_directories(data: Any) -> dict[str, Path]:
    """
    Parse the directories table.

    Keys ending in "_enabled" are flags for the directory of the same name;
    a directory is kept unless its flag is explicitly false.
    """
    if not isinstance(data, dict):
        raise TypeError("'directories' must be a mapping of name -> path")

    directories = {}
    for name, value in data.items():
        if not isinstance(name, str):
            raise TypeError(f"directory name must be a string, got {name!r}")
        if name.endswith(ENABLED_SUFFIX):
            continue
        if data.get(f"{name}{ENABLED_SUFFIX}", True) is False:
            logger.debug(f"Directory disabled in config: {name}")
            continue
        directories[name] = expand_path(value)
    return directories


def _parse_extensions(data: Any) -> list[FileExtension]:
    """Parse the extensions list, keeping only entries marked enabled."""
    if not isinstance(data, list):
        raise TypeError("'extensions' must be a list")

    extensions = []
    for entry in data:
        if not isinstance(entry, dict):
            raise TypeError("each extension must be a mapping")
        if "name" not in entry or "path" not in entry:
            raise ValueError("extension entry missing required 'name' or 'path' field")
        if entry.get("enabled") is not True:
            continue
        extensions.append(FileExtension(name=str(entry["name"]), path=expand_path(entry["path"])))
    return extensions


# Example configuration template
EXAMPLE_CONFIG = """# frouter configuration
#
# Files appearing in any of the directories below are moved to the
# destination of the first enabled extension that matches their suffix.

directories:
  downloads: ~/Downloads

extensions:
  - name: pdf
    path: ~/Downloads/PDF
    enabled: true

  - name: jpg
    path: ~/Downloads/IMAGES/JPG
    enabled: true

  - name: png
    path: ~/Downloads/IMAGES/PNG
    enabled: true
"""


def write_example_config(config_path: Path) -> None:
    """Write an example configuration file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(EXAMPLE_CONFIG)
    logger.info(f"Wrote example configuration to {config_path}")


def ensure_config_exists(config_path: Path) -> bool:
    """
    Write the example configuration if no file exists yet.

    Returns:
        True if a new file was written
    """
    if config_path.exists():
        logger.debug(f"Config file already exists at {config_path}")
        return False
    logger.info(f"Config file not found at {config_path}, creating default")
    write_example_config(config_path)
    return True
