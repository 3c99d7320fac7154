"""
plughost Plugin System - Plugin discovery, dependency linking and loading.

This module handles:
- Entry point resolution and plugin root discovery
- Symlinking host dependencies into plugin trees
- Repairing relative imports of the core package
- Lifecycle management of loaded plugins
- Plugin configuration, download and installation
"""

from plughost.plugin.errors import (
    DependencyLinkWarning,
    EntryPointNotFoundError,
    ImportRewriteWarning,
    LoaderUnavailableError,
    PluginDownloadError,
    PluginHostError,
    PluginLoadError,
)
from plughost.plugin.lifecycle import LifecycleState, PluginLifecycleManager

__all__ = [
    "DependencyLinkWarning",
    "EntryPointNotFoundError",
    "ImportRewriteWarning",
    "LifecycleState",
    "LoaderUnavailableError",
    "PluginDownloadError",
    "PluginHostError",
    "PluginLifecycleManager",
    "PluginLoadError",
]
