"""
zipkg Configuration - TOML-based provider configuration.

This module provides:
- The provider configuration schema
- Loading and validating the [provider] section of a TOML file
- Generating a commented default config file

Example usage:
    from zipkg.config import load_config

    config = load_config(Path("zipkg.toml"))
    print(config.cache_root)
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from zipkg.config.schema import (
    ConfigField,
    ValidationError,
    generate_default_config,
    validate_config,
)
from zipkg.config.toml_handler import (
    TOMLError,
    generate_toml_from_schema,
    read_toml,
    write_toml,
)

DEFAULT_CONFIG_FILE = Path("zipkg.toml")
SECTION = "provider"


class ConfigError(Exception):
    """Raised when the provider configuration cannot be loaded."""

    pass


def default_cache_root() -> Path:
    """
    Per-user directory holding installed packages.

    Returns:
        %LOCALAPPDATA%/zipkg/packages on Windows,
        $XDG_DATA_HOME/zipkg/packages (or ~/.local/share/...) elsewhere
    """
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "zipkg" / "packages"


PROVIDER_SCHEMA: dict[str, ConfigField] = {
    "cache_root": ConfigField(
        str, str(default_cache_root()), "Directory holding installed packages", min=1
    ),
    "script_timeout": ConfigField(
        int, 600, "Lifecycle script timeout in seconds (0 disables)", min=0
    ),
    "log_level": ConfigField(
        str,
        "WARNING",
        "Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    ),
}


@dataclass
class ProviderConfig:
    """
    Provider configuration.

    Attributes:
        cache_root: Directory holding installed packages
        script_timeout: Lifecycle script timeout in seconds, None for no limit
        log_level: Logging level name
    """

    cache_root: Path
    script_timeout: int | None = 600
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProviderConfig":
        values = generate_default_config(PROVIDER_SCHEMA)
        values.update(data)
        return cls(
            cache_root=Path(values["cache_root"]).expanduser(),
            script_timeout=values["script_timeout"] or None,
            log_level=values["log_level"],
        )


def load_config(config_file: Path | None = None) -> ProviderConfig:
    """
    Load the provider configuration.

    Args:
        config_file: TOML file path (default: zipkg.toml). A missing file
            yields the defaults.

    Returns:
        ProviderConfig instance

    Raises:
        ConfigError: If the file is malformed or a value is invalid
    """
    config_file = config_file or DEFAULT_CONFIG_FILE

    if not config_file.exists():
        return ProviderConfig.from_dict({})

    try:
        data = read_toml(config_file)
        section = data.get(SECTION, {})
        if not isinstance(section, dict):
            raise ConfigError(f"[{SECTION}] in {config_file} must be a table")
        validate_config(section, PROVIDER_SCHEMA)
    except (TOMLError, ValidationError) as e:
        raise ConfigError(f"Invalid configuration {config_file}: {e}") from e

    return ProviderConfig.from_dict(section)


def write_default_config(config_file: Path | None = None) -> Path:
    """
    Write a commented configuration template.

    Args:
        config_file: Target path (default: zipkg.toml)

    Returns:
        The written path

    Raises:
        ConfigError: If the file cannot be written
    """
    config_file = config_file or DEFAULT_CONFIG_FILE
    content = generate_toml_from_schema(SECTION, PROVIDER_SCHEMA, {})

    try:
        write_toml(config_file, content)
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    return config_file


__all__ = [
    "ConfigError",
    "ProviderConfig",
    "PROVIDER_SCHEMA",
    "default_cache_root",
    "load_config",
    "write_default_config",
]
