"""
plughost Configuration - TOML-based host settings.

This module provides:
- The settings schema and its defaults
- Loading of the [host] table with environment overrides
- Generation of a commented default settings file

Example usage:
    import plughost.config

    settings = plughost.config.load_settings(Path("config/plughost.toml"))
    print(settings.core_package)

Environment variables named PLUGHOST_<FIELD> (e.g. PLUGHOST_LOG_LEVEL)
override values read from the file.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from plughost.config.schema import (
    ConfigField,
    ValidationError,
    generate_default_config,
    validate_config,
)
from plughost.config.toml_handler import TOMLError, generate_toml_from_schema, read_toml

DEFAULT_CONFIG_FILE = Path("config/plughost.toml")
SECTION = "host"
ENV_PREFIX = "PLUGHOST_"


class ConfigError(Exception):
    """Base exception for config API errors."""

    pass


SCHEMA: dict[str, ConfigField] = {
    "app_data_dir": ConfigField(
        str, "data", "Writable directory holding plugins/ and plugins.toml"
    ),
    "core_package": ConfigField(
        str, "effectgen", "Core generation library every plugin builds on"
    ),
    "dependency_dir": ConfigField(
        str, "site-packages", "Name of a dependency directory (host and plugins)"
    ),
    "vendor_dir": ConfigField(
        str, "_vendor", "Directory inside the core package holding its native deps"
    ),
    "manifest_name": ConfigField(str, "manifest.json", "Plugin manifest filename"),
    "default_entry": ConfigField(
        str, "plugin.py", "Entry file tried when a manifest has no main"
    ),
    "search_path_var": ConfigField(
        str, "PYTHONPATH", "Environment variable used as the module search path"
    ),
    "loader": ConfigField(
        str,
        "plughost.plugin.loader:ImportlibPluginLoader",
        "Plugin loader capability as module:attribute",
    ),
    "log_level": ConfigField(
        str,
        "INFO",
        "Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    ),
}


@dataclass(frozen=True)
class HostSettings:
    """
    Resolved host settings.

    Attributes mirror SCHEMA; app_data_dir is converted to a Path.
    """

    app_data_dir: Path = Path(SCHEMA["app_data_dir"].default)
    core_package: str = SCHEMA["core_package"].default
    dependency_dir: str = SCHEMA["dependency_dir"].default
    vendor_dir: str = SCHEMA["vendor_dir"].default
    manifest_name: str = SCHEMA["manifest_name"].default
    default_entry: str = SCHEMA["default_entry"].default
    search_path_var: str = SCHEMA["search_path_var"].default
    loader: str = SCHEMA["loader"].default
    log_level: str = SCHEMA["log_level"].default

    @property
    def plugins_dir(self) -> Path:
        return self.app_data_dir / "plugins"

    @property
    def plugins_config_file(self) -> Path:
        return self.app_data_dir / "plugins.toml"


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, field in SCHEMA.items():
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None:
            continue
        try:
            overrides[name] = field.coerce(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid {ENV_PREFIX}{name.upper()}: {e}") from e
    return overrides


def load_settings(
    config_file: Path | None = None, environ: dict[str, str] | None = None
) -> HostSettings:
    """
    Load host settings.

    Args:
        config_file: TOML file to read (default: config/plughost.toml). A
            missing file is not an error; defaults apply.
        environ: Environment mapping (default: os.environ)

    Returns:
        HostSettings instance

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    config_file = config_file or DEFAULT_CONFIG_FILE
    environ = os.environ if environ is None else environ

    values = generate_default_config(SCHEMA)

    if config_file.exists():
        try:
            data = read_toml(config_file)
        except TOMLError as e:
            raise ConfigError(str(e)) from e

        section = data.get(SECTION, {})
        if not isinstance(section, dict):
            raise ConfigError(f"[{SECTION}] in {config_file} must be a table")
        try:
            validate_config(section, SCHEMA)
        except ValidationError as e:
            raise ConfigError(f"{config_file}: {e}") from e
        values.update(section)

    overrides = _env_overrides(environ)
    try:
        validate_config(overrides, SCHEMA)
    except ValidationError as e:
        raise ConfigError(f"environment: {e}") from e
    values.update(overrides)

    values["app_data_dir"] = Path(values["app_data_dir"])
    known = {f.name for f in fields(HostSettings)}
    return HostSettings(**{k: v for k, v in values.items() if k in known})


def write_default_config(config_file: Path | None = None) -> Path:
    """
    Write a commented settings file holding every default.

    Returns:
        The path written
    """
    config_file = config_file or DEFAULT_CONFIG_FILE
    content = generate_toml_from_schema(SECTION, SCHEMA, generate_default_config(SCHEMA))
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write {config_file}: {e}") from e
    return config_file


__all__ = [
    "SCHEMA",
    "ConfigError",
    "HostSettings",
    "load_settings",
    "write_default_config",
]
