"""Configuration file I/O operations.

This module provides functions for loading and saving config.toml with
validation through the AppConfig Pydantic model.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from winupctl.core.paths import get_config_path
from winupctl.models.config import AppConfig

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when config content doesn't match the schema."""


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated AppConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> AppConfig:
    """Load configuration, falling back to defaults when the file is absent.

    Parse and validation errors are still raised so that a broken config
    is never silently ignored.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using defaults")
        return AppConfig()


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace().

    Args:
        config: The AppConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_exists(path: Path | None = None) -> bool:
    """Check if a config file exists.

    Args:
        path: Path to check. If None, uses the default config path.
    """
    config_path = path or get_config_path()
    return config_path.exists()


def require_config(config_path: Path | None = None) -> AppConfig:
    """Load config (or defaults) or exit with a helpful error message.

    Convenience wrapper for CLI commands.

    Raises:
        typer.Exit: If the config file exists but cannot be loaded.
    """
    import typer

    from winupctl.utils.formatting import print_error, print_info

    path = config_path or get_config_path()
    try:
        return load_config_or_default(path)
    except ConfigError as e:
        print_error(f"Failed to load config {path}: {e}")
        print_info("Fix the file or run 'winupctl config init --force' to reset it.")
        raise typer.Exit(code=1) from e


def _config_to_dict(config: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to a dictionary suitable for TOML serialization.

    Enum values are converted to their string values.
    """
    return config.model_dump(mode="json")
