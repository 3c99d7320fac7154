"""Helpers shared by pm commands."""

from pathlib import Path
from typing import Any

from plughost.app import PluginHost, create_plugin_host
from plughost.config import ConfigError, load_settings
from plughost.core.logging_config import configure_logging

from pm.cli import PMError


def open_host(args: Any) -> PluginHost:
    """
    Load settings, configure logging and build an initialized plugin host.

    Raises:
        PMError: If the settings file is invalid
    """
    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except ConfigError as e:
        raise PMError(f"Invalid settings: {e}") from e

    configure_logging("DEBUG" if args.verbose else settings.log_level)

    host = create_plugin_host(settings)
    host.store.initialize()
    return host
