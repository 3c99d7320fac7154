"""
plughost - Plugin lifecycle and dependency resolution for effect hosts.

Loads user-installed plugins into a host application, making the host's own
dependencies (including its core effect library) importable from each plugin.
"""

__version__ = "0.1.0"

from plughost.plugin.lifecycle import PluginLifecycleManager
from plughost.plugin.records import LoadResult, PluginDescriptor
from plughost.resolution.context import ModuleResolutionContext

__all__ = [
    "__version__",
    "LoadResult",
    "ModuleResolutionContext",
    "PluginDescriptor",
    "PluginLifecycleManager",
]
