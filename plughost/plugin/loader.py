"""
Dynamic Plugin Loader.

This module provides the loader capability the lifecycle manager drives.

Key features:
- PluginLoader protocol with a single load(path) operation
- importlib-based default implementation with per-path module caching
- Plugin dependency directories added to sys.path before execution
- Runtime acquisition of a loader from a "module:attribute" string
"""

import hashlib
import importlib
import importlib.util
import logging
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from plughost.plugin.errors import LoaderUnavailableError, PluginLoadError

_log = logging.getLogger(__name__)

MODULE_PREFIX = "plughost_plugin_"


@runtime_checkable
class PluginLoader(Protocol):
    """Executes plugin code. load() may return a value or an awaitable."""

    def load(self, path: Path) -> Any: ...


def _module_name(entry_point: Path) -> str:
    stem = re.sub(r"\W", "_", entry_point.stem.lstrip(".")) or "plugin"
    digest = hashlib.sha1(str(entry_point).encode("utf-8")).hexdigest()[:10]
    return f"{MODULE_PREFIX}{stem}_{digest}"


class ImportlibPluginLoader:
    """
    Loads plugin entry files as standalone modules.

    Args:
        dependency_dir: Name of the plugin-local dependency directory to put
            on sys.path before executing the plugin
        max_depth: How many parent directories to search for it
    """

    def __init__(self, dependency_dir: str = "site-packages", max_depth: int = 10):
        self.dependency_dir = dependency_dir
        self.max_depth = max_depth
        # entry path -> module
        self._module_cache: dict[Path, ModuleType] = {}

    def load(self, path: Path) -> ModuleType:
        """
        Load a plugin module dynamically.

        Args:
            path: Entry file to execute

        Returns:
            Loaded module

        Raises:
            PluginLoadError: If loading fails
        """
        entry_point = Path(path)

        if not entry_point.is_file():
            raise PluginLoadError(f"Entry point not found: {entry_point}")

        if entry_point in self._module_cache:
            return self._module_cache[entry_point]

        self._extend_search_path(entry_point)
        module_name = _module_name(entry_point)

        try:
            spec = importlib.util.spec_from_file_location(module_name, entry_point)

            if spec is None or spec.loader is None:
                raise PluginLoadError(f"Failed to create module spec for {entry_point}")

            module = importlib.util.module_from_spec(spec)

            # Add to sys.modules before execution
            sys.modules[module_name] = module

            spec.loader.exec_module(module)

            register = getattr(module, "register", None)
            if callable(register):
                register()

        except Exception as e:
            sys.modules.pop(module_name, None)
            if isinstance(e, PluginLoadError):
                raise
            raise PluginLoadError(f"{type(e).__name__}: {e}") from e

        self._module_cache[entry_point] = module
        _log.debug("loaded %s as %s", entry_point, module_name)
        return module

    def _extend_search_path(self, entry_point: Path) -> None:
        current = entry_point.parent
        for _ in range(self.max_depth):
            candidate = current / self.dependency_dir
            if candidate.is_dir():
                if str(candidate) not in sys.path:
                    sys.path.insert(0, str(candidate))
                return
            if current.parent == current:
                return
            current = current.parent

    def unload(self, path: Path) -> None:
        """Forget a loaded plugin module."""
        entry_point = Path(path)
        self._module_cache.pop(entry_point, None)
        sys.modules.pop(_module_name(entry_point), None)

    def is_loaded(self, path: Path) -> bool:
        return Path(path) in self._module_cache

    def clear(self) -> None:
        """Forget every loaded plugin module."""
        for entry_point in list(self._module_cache):
            self.unload(entry_point)


def acquire_loader(target: str, **options: Any) -> PluginLoader:
    """
    Resolve a loader capability at runtime.

    Args:
        target: "package.module:attribute". A class is instantiated, any
            other callable without a load() method is called as a factory,
            and an object with load() is used as is.
        **options: Keyword arguments passed to the class or factory

    Returns:
        PluginLoader

    Raises:
        LoaderUnavailableError: If the target cannot be imported or does not
            produce a loader
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise LoaderUnavailableError(
            f"Invalid loader target {target!r}; expected 'module:attribute'"
        )

    try:
        module = importlib.import_module(module_name)
        obj = module
        for part in attribute.split("."):
            obj = getattr(obj, part)

        if isinstance(obj, type):
            loader = obj(**options)
        elif callable(obj) and not hasattr(obj, "load"):
            loader = obj(**options)
        else:
            loader = obj
    except LoaderUnavailableError:
        raise
    except Exception as e:
        raise LoaderUnavailableError(f"Cannot acquire loader {target!r}: {e}") from e

    if not callable(getattr(loader, "load", None)):
        raise LoaderUnavailableError(f"Loader {target!r} has no load() method")
    return loader
