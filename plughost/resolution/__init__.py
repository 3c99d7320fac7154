"""
plughost Resolution - Where the host's dependencies live.

Packaged builds run from an application archive; this package maps that to
the on-disk locations plugins must import from.
"""

from plughost.resolution.context import ModulePathContext, ModuleResolutionContext

__all__ = ["ModulePathContext", "ModuleResolutionContext"]
