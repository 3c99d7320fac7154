"""
Plugin Lifecycle Manager.

Orchestrates loading of every configured plugin:

    descriptor -> entry file -> plugin root -> dependency links
               -> import fixes -> loader.load() -> record + notification

Plugins in a batch load strictly one after another. A failing plugin only
produces a failed LoadResult; the batch is aborted only when no loader can be
acquired at all.
"""

import inspect
import logging
import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from plughost.plugin.entry import PluginEntryResolver
from plughost.plugin.errors import LoaderUnavailableError, PluginLoadError
from plughost.plugin.linker import DependencyLinker
from plughost.plugin.loader import PluginLoader
from plughost.plugin.records import (
    LoadedPluginRecord,
    LoadResult,
    PluginDescriptor,
    ResolvedEntry,
)
from plughost.plugin.rewriter import ImportRewriter, TempFileRegistry, core_package_rule
from plughost.plugin.root import PluginRootLocator
from plughost.resolution.context import ModuleResolutionContext

_log = logging.getLogger(__name__)

PLUGIN_LOADED = "plugin:loaded"
PLUGIN_LOAD_ERROR = "plugin:loadError"
REGISTRY_REFRESHED = "effectRegistry:refreshed"
PLUGINS_UNLOADED = "plugins:unloaded"

MODULE_NOT_FOUND = re.compile(
    r"No module named|ModuleNotFoundError|cannot import name|attempted relative import"
)


class LifecycleState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class PluginConfigProvider(Protocol):
    def initialize(self) -> Any: ...

    def load_plugins_for_generation(self) -> Any: ...


class EventSink(Protocol):
    def emit(self, event_id: str, payload: Any = None) -> None: ...


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class PluginLifecycleManager:
    """
    Loads, tracks and unloads plugins.

    Args:
        provider: Configuration collaborator with initialize() and
            load_plugins_for_generation()
        context: Module resolution context for this process
        loader_provider: Zero-argument callable returning a PluginLoader
        refresher: Called once with use_cache=False after a batch in which
            at least one plugin loaded
        event_sink: Receives lifecycle notifications (none sent if omitted)
        resolver, locator, linker, rewriter, temp_files: Pipeline stages;
            defaults are built from the context
    """

    def __init__(
        self,
        provider: PluginConfigProvider,
        context: ModuleResolutionContext,
        loader_provider: Callable[[], PluginLoader],
        refresher: Callable[..., Any] | None = None,
        event_sink: EventSink | None = None,
        resolver: PluginEntryResolver | None = None,
        locator: PluginRootLocator | None = None,
        linker: DependencyLinker | None = None,
        rewriter: ImportRewriter | None = None,
        temp_files: TempFileRegistry | None = None,
    ):
        self.provider = provider
        self.context = context
        self.loader_provider = loader_provider
        self.refresher = refresher
        self.event_sink = event_sink

        self.resolver = resolver or PluginEntryResolver()
        self.locator = locator or PluginRootLocator()
        self.linker = linker or DependencyLinker(context, dependency_dir=context.dependency_dir)
        self.temp_files = temp_files if temp_files is not None else TempFileRegistry()
        self.rewriter = rewriter or ImportRewriter(
            [core_package_rule(context.core_package)], self.temp_files
        )

        self._state = LifecycleState.UNINITIALIZED
        # name -> record, in load order
        self._loaded: dict[str, LoadedPluginRecord] = {}

    @property
    def state(self) -> LifecycleState:
        return self._state

    async def initialize(self) -> None:
        if self._state is LifecycleState.READY:
            return

        self._state = LifecycleState.INITIALIZING
        try:
            search_path = self.context.configure_search_path()
            _log.info("module search path: %s", search_path)
            _log.debug("module resolution diagnostics: %s", self.context.diagnostics())
            await _maybe_await(self.provider.initialize())
        except Exception:
            self._state = LifecycleState.UNINITIALIZED
            raise

        self._state = LifecycleState.READY
        _log.info("plugin lifecycle manager ready")

    async def ensure_plugins_loaded(self) -> list[LoadResult]:
        """
        Load every configured plugin.

        Returns:
            One LoadResult per descriptor, in configuration order

        Raises:
            LoaderUnavailableError: If the loader cannot be acquired
        """
        await self.initialize()

        descriptors = list(await _maybe_await(self.provider.load_plugins_for_generation()))
        if not descriptors:
            _log.info("no plugins configured")
            return []

        loader = self._acquire_loader()

        results = []
        for descriptor in descriptors:
            results.append(await self._load_single_plugin(loader, descriptor))

        succeeded = sum(1 for r in results if r.success)
        _log.info("loaded %d of %d plugin(s)", succeeded, len(results))
        if succeeded:
            await self._refresh_registry()
        return results

    async def load_plugin(self, descriptor: PluginDescriptor) -> LoadResult:
        """
        Load one plugin outside of a batch.

        Raises:
            LoaderUnavailableError: If the loader cannot be acquired
        """
        await self.initialize()
        loader = self._acquire_loader()
        result = await self._load_single_plugin(loader, descriptor)
        if result.success:
            await self._refresh_registry()
        return result

    def _acquire_loader(self) -> PluginLoader:
        try:
            loader = self.loader_provider()
        except LoaderUnavailableError as e:
            if e.diagnostics is None:
                e.diagnostics = self.context.diagnostics()
            raise
        except Exception as e:
            raise LoaderUnavailableError(
                f"Plugin loader unavailable: {e}", diagnostics=self.context.diagnostics()
            ) from e

        if loader is None or not callable(getattr(loader, "load", None)):
            raise LoaderUnavailableError(
                "Plugin loader unavailable: provider returned no loader",
                diagnostics=self.context.diagnostics(),
            )
        return loader

    async def _load_single_plugin(self, loader: PluginLoader, descriptor: PluginDescriptor) -> LoadResult:
        if not descriptor.valid:
            error = descriptor.error or "Plugin marked invalid"
            _log.error("skipping plugin %s: %s", descriptor.name, error)
            return LoadResult(descriptor.name, descriptor.path, False, error)

        try:
            resolved = self.resolve_entry(descriptor.path)
            self.linker.link(resolved.root_dir)
            final_path = self.rewriter.fix(resolved.entry_path)
            await _maybe_await(loader.load(final_path))
        except Exception as e:
            error = self._describe_failure(e)
            _log.error("failed to load plugin %s: %s", descriptor.name, error)
            self._emit(
                PLUGIN_LOAD_ERROR,
                {"name": descriptor.name, "path": descriptor.path, "error": error},
            )
            return LoadResult(descriptor.name, descriptor.path, False, error)

        self._loaded[descriptor.name] = LoadedPluginRecord(descriptor.name, descriptor.path)
        _log.info("loaded plugin %s from %s", descriptor.name, final_path)
        self._emit(PLUGIN_LOADED, {"name": descriptor.name, "path": descriptor.path})
        return LoadResult(descriptor.name, descriptor.path, True)

    def resolve_entry(self, path: str | Path) -> ResolvedEntry:
        """
        Resolve a plugin path to its entry file and root directory.

        Raises:
            EntryPointNotFoundError: If no entry file can be found
        """
        entry_path = self.resolver.resolve(path)
        return ResolvedEntry(entry_path, self.locator.locate(entry_path))

    def _describe_failure(self, error: Exception) -> str:
        message = str(error)
        if isinstance(error, PluginLoadError) and error.diagnostics:
            return message
        if MODULE_NOT_FOUND.search(f"{type(error).__name__}: {message}"):
            wrapped = PluginLoadError(message, diagnostics=self.context.diagnostics())
            return str(wrapped)
        return message

    async def _refresh_registry(self) -> None:
        if self.refresher is None:
            return
        try:
            await _maybe_await(self.refresher(use_cache=False))
        except Exception as e:
            _log.error("registry refresh failed: %s", e)
            return
        self._emit(REGISTRY_REFRESHED)

    def _emit(self, event_id: str, payload: Any = None) -> None:
        if self.event_sink is not None:
            self.event_sink.emit(event_id, payload)

    def get_loaded_plugins(self) -> list[LoadedPluginRecord]:
        return list(self._loaded.values())

    def get_plugin_paths(self) -> list[str]:
        return [record.path for record in self._loaded.values()]

    def is_initialized(self) -> bool:
        return self._state is LifecycleState.READY

    def get_loaded_plugin_count(self) -> int:
        return len(self._loaded)

    def is_plugin_loaded(self, name: str) -> bool:
        return name in self._loaded

    def forget_plugin(self, name: str) -> bool:
        return self._loaded.pop(name, None) is not None

    async def unload_all_plugins(self) -> None:
        removed = self.temp_files.purge()
        if removed:
            _log.info("removed %d rewritten plugin file(s)", removed)
        self._loaded.clear()
        self._state = LifecycleState.UNINITIALIZED
        self._emit(PLUGINS_UNLOADED)
