"""
Plugin Installer.

Install, uninstall and reload individual plugins on top of the configuration
store and the lifecycle manager.
"""

import logging
import shutil
from pathlib import Path

from plughost.plugin.download import PluginDownloader, is_url
from plughost.plugin.errors import PluginHostError
from plughost.plugin.lifecycle import PluginLifecycleManager
from plughost.plugin.linker import DependencyLinker
from plughost.plugin.records import LoadResult, PluginConfigEntry
from plughost.plugin.rewriter import FIXED_INFIX, fixed_path
from plughost.plugin.store import PluginConfigStore

_log = logging.getLogger(__name__)


class PluginInstaller:
    def __init__(
        self,
        store: PluginConfigStore,
        manager: PluginLifecycleManager,
        linker: DependencyLinker,
        downloader: PluginDownloader | None = None,
    ):
        self.store = store
        self.manager = manager
        self.linker = linker
        self.downloader = downloader or PluginDownloader(store.plugins_dir)

    async def install(self, source: str, name: str | None = None) -> LoadResult:
        """
        Install a plugin from a local path or an archive URL, then load it.

        A plugin that fails to load is removed from the configuration again,
        or its earlier entry is restored. Downloaded files are removed as well.

        Returns:
            LoadResult of the initial load

        Raises:
            PluginHostError: If the plugin cannot be downloaded or is invalid
            LoaderUnavailableError: If no loader can be acquired (after rollback)
        """
        downloaded = None
        if is_url(source):
            downloaded = self.downloader.download(source, name)
            path = downloaded
            plugin_type = "url"
        else:
            path = Path(source).expanduser().absolute()
            plugin_type = "local"

        validation = self.store.validate_plugin(path)
        if not validation.valid:
            if downloaded is not None:
                shutil.rmtree(downloaded, ignore_errors=True)
            raise PluginHostError(f"Invalid plugin at {path}: {validation.error}")

        name = name or validation.info.get("name") or path.stem
        previous = self.store.get_plugin(name)
        if previous is not None:
            # add_plugin updates the stored entry in place
            previous = PluginConfigEntry.from_dict(previous.to_dict())
        self.store.add_plugin(name, str(path), type=plugin_type)

        try:
            result = await self.manager.load_plugin(self.store.get_descriptor(name))
        except PluginHostError as e:
            _log.error("plugin %s could not be loaded, rolling back: %s", name, e)
            self._rollback(name, previous, downloaded)
            raise

        if result.success:
            _log.info("installed plugin %s from %s", name, source)
            return result

        _log.error("plugin %s failed to load, rolling back: %s", name, result.error)
        self._rollback(name, previous, downloaded)
        return result

    def _rollback(
        self, name: str, previous: PluginConfigEntry | None, downloaded: Path | None
    ) -> None:
        if previous is not None:
            self.store.restore_plugin(previous)
        else:
            self.store.remove_plugin(name)
        if downloaded is not None:
            shutil.rmtree(downloaded, ignore_errors=True)

    async def uninstall(self, name: str, delete_source: bool = False) -> bool:
        """
        Remove a plugin's configuration and the files the host created for it.

        Args:
            name: Plugin name
            delete_source: Also delete the plugin's own directory or file

        Returns:
            False if no such plugin is configured
        """
        entry = self.store.get_plugin(name)
        if entry is None:
            return False

        self.manager.forget_plugin(name)
        path = self.store.full_path(entry.path)
        if path.is_dir():
            self.linker.cleanup(path)
            rewritten = list(path.rglob(f".*{FIXED_INFIX}.py"))
        else:
            rewritten = [fixed_path(path)] if fixed_path(path).exists() else []

        for fixed in rewritten:
            try:
                fixed.unlink()
            except OSError as e:
                _log.warning("could not delete %s: %s", fixed, e)

        self.store.remove_plugin(name)

        if delete_source and path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()

        _log.info("uninstalled plugin %s", name)
        return True

    async def reload(self, name: str) -> LoadResult:
        """
        Forget and load one plugin again.

        Raises:
            PluginHostError: If no such plugin is configured
        """
        descriptor = self.store.get_descriptor(name)
        self.manager.forget_plugin(name)
        return await self.manager.load_plugin(descriptor)
