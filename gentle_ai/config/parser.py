"""Loading of the optional gentle-ai.yaml install configuration."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from gentle_ai.config.schemas import InstallConfig

CONFIG_FILENAME = "gentle-ai.yaml"


class ConfigError(Exception):
    """A configuration file is missing, unreadable or invalid."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML file whose top level is a mapping.

    An empty file yields an empty dict.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed or not a mapping
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}, got {type(data).__name__}", path)
    return data


def load_install_config(path: Path) -> InstallConfig:
    """Read and validate an install configuration file.

    Args:
        path: Path to a gentle-ai.yaml file

    Returns:
        The validated InstallConfig

    Raises:
        ConfigError: If the file cannot be loaded or fails validation
    """
    try:
        return InstallConfig.model_validate(load_yaml(path))
    except ValidationError as e:
        raise ConfigError(f"Invalid install config in {path}: {e}", path) from e


def find_config_file(directory: Path | None = None) -> Path | None:
    """Return ``directory/gentle-ai.yaml`` if it exists (cwd by default)."""
    candidate = (directory or Path.cwd()) / CONFIG_FILENAME
    return candidate if candidate.is_file() else None
