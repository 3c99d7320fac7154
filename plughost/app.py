"""
Application wiring.

Builds the collaborators of a plugin host from HostSettings.
"""

from dataclasses import dataclass

from plughost.config import HostSettings
from plughost.core.event_bus import EventBus
from plughost.plugin.download import PluginDownloader
from plughost.plugin.entry import PluginEntryResolver
from plughost.plugin.installer import PluginInstaller
from plughost.plugin.lifecycle import PluginLifecycleManager
from plughost.plugin.linker import DependencyLinker
from plughost.plugin.loader import acquire_loader
from plughost.plugin.rewriter import ImportRewriter, TempFileRegistry, core_package_rule
from plughost.plugin.root import PluginRootLocator
from plughost.plugin.store import PluginConfigStore
from plughost.resolution.context import ModuleResolutionContext


@dataclass
class PluginHost:
    settings: HostSettings
    context: ModuleResolutionContext
    events: EventBus
    store: PluginConfigStore
    manager: PluginLifecycleManager
    installer: PluginInstaller


def create_plugin_host(settings: HostSettings, refresher=None, events: EventBus | None = None) -> PluginHost:
    """
    Wire a plugin host.

    Args:
        settings: Host settings
        refresher: Effect registry refresher, called after successful loads
        events: Event bus to notify (a new one is created otherwise)
    """
    context = ModuleResolutionContext(
        dependency_dir=settings.dependency_dir,
        core_package=settings.core_package,
        search_path_var=settings.search_path_var,
    )
    events = events or EventBus()
    store = PluginConfigStore(settings.app_data_dir, manifest_name=settings.manifest_name)

    linker = DependencyLinker(
        context,
        dependency_dir=settings.dependency_dir,
        vendor_dir=settings.vendor_dir,
        manifest_name=settings.manifest_name,
    )
    temp_files = TempFileRegistry()

    manager = PluginLifecycleManager(
        provider=store,
        context=context,
        loader_provider=lambda: acquire_loader(
            settings.loader, dependency_dir=settings.dependency_dir
        ),
        refresher=refresher,
        event_sink=events,
        resolver=PluginEntryResolver(settings.manifest_name, settings.default_entry),
        locator=PluginRootLocator(settings.manifest_name),
        linker=linker,
        rewriter=ImportRewriter([core_package_rule(settings.core_package)], temp_files),
        temp_files=temp_files,
    )

    installer = PluginInstaller(
        store, manager, linker, downloader=PluginDownloader(settings.plugins_dir)
    )
    return PluginHost(settings, context, events, store, manager, installer)
