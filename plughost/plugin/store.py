"""
Plugin Configuration Store.

Persists the list of configured plugins in <app_data_dir>/plugins.toml:

    [[plugins]]
    name = "glow-fx"
    path = "glow-fx"            # relative to <app_data_dir>/plugins
    type = "local"
    enabled = true
    added_at = "2026-01-01T00:00:00+00:00"
    updated_at = "2026-01-01T00:00:00+00:00"

This is the configuration collaborator the lifecycle manager pulls plugin
descriptors from.
"""

import logging
from pathlib import Path

from plughost.config.toml_handler import TOMLError, read_toml, write_toml
from plughost.plugin.errors import PluginHostError
from plughost.plugin.manifest import ManifestError, parse_manifest
from plughost.plugin.records import (
    PluginConfigEntry,
    PluginDescriptor,
    PluginValidation,
    utc_timestamp,
)

_log = logging.getLogger(__name__)


class PluginConfigStore:
    """
    TOML-backed plugin configuration.

    Args:
        app_data_dir: Writable directory holding plugins/ and plugins.toml
        manifest_name: Plugin manifest filename
    """

    def __init__(self, app_data_dir: Path, manifest_name: str = "manifest.json"):
        self.app_data_dir = Path(app_data_dir)
        self.plugins_dir = self.app_data_dir / "plugins"
        self.config_path = self.app_data_dir / "plugins.toml"
        self.manifest_name = manifest_name
        self._entries: list[PluginConfigEntry] = []

    def initialize(self) -> None:
        try:
            self.plugins_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            _log.error("could not create plugins directory %s: %s", self.plugins_dir, e)
        self.load_configs()

    def load_configs(self) -> list[PluginConfigEntry]:
        if not self.config_path.exists():
            self._entries = []
            return self._entries

        try:
            data = read_toml(self.config_path)
        except TOMLError as e:
            _log.error("failed to load plugin configs: %s", e)
            self._entries = []
            return self._entries

        entries = []
        for raw in data.get("plugins", []):
            try:
                entries.append(PluginConfigEntry.from_dict(raw))
            except (KeyError, TypeError) as e:
                _log.warning("skipping malformed plugin entry %r: %s", raw, e)
        self._entries = entries
        return self._entries

    def save_configs(self) -> None:
        """
        Raises:
            TOMLError: If the file cannot be written
        """
        write_toml(self.config_path, {"plugins": [e.to_dict() for e in self._entries]})

    def get_plugins(self) -> list[PluginConfigEntry]:
        return list(self._entries)

    def get_enabled_plugins(self) -> list[PluginConfigEntry]:
        return [e for e in self._entries if e.enabled]

    def get_plugin(self, name: str) -> PluginConfigEntry | None:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def add_plugin(
        self, name: str, path: str | Path, type: str = "local", enabled: bool = True
    ) -> PluginConfigEntry:
        """Add a plugin, or update the existing entry with the same name."""
        existing = self.get_plugin(name)
        if existing is not None:
            existing.path = str(path)
            existing.type = type
            existing.enabled = enabled
            existing.updated_at = utc_timestamp()
            entry = existing
        else:
            entry = PluginConfigEntry(name=name, path=str(path), type=type, enabled=enabled)
            self._entries.append(entry)

        self.save_configs()
        return entry

    def restore_plugin(self, entry: PluginConfigEntry) -> None:
        """Put back a saved entry as is, timestamps included."""
        for i, existing in enumerate(self._entries):
            if existing.name == entry.name:
                self._entries[i] = entry
                break
        else:
            self._entries.append(entry)
        self.save_configs()

    def remove_plugin(self, name: str) -> bool:
        entry = self.get_plugin(name)
        if entry is None:
            return False
        self._entries.remove(entry)
        self.save_configs()
        return True

    def toggle_plugin(self, name: str) -> bool | None:
        """
        Flip a plugin's enabled flag.

        Returns:
            The new flag, or None if the plugin is not configured
        """
        entry = self.get_plugin(name)
        if entry is None:
            return None
        entry.enabled = not entry.enabled
        entry.updated_at = utc_timestamp()
        self.save_configs()
        return entry.enabled

    def full_path(self, path: str | Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.plugins_dir / path

    def validate_plugin(self, path: str | Path) -> PluginValidation:
        """Check that a plugin path looks loadable."""
        full = self.full_path(path)

        if full.is_dir():
            manifest_path = full / self.manifest_name
            try:
                manifest = parse_manifest(manifest_path)
            except ManifestError as e:
                return PluginValidation(False, str(e))

            if not manifest.main:
                return PluginValidation(False, f"Plugin {self.manifest_name} missing main entry point")
            if not (full / manifest.main).is_file():
                return PluginValidation(False, f"Entry point not found: {full / manifest.main}")

            return PluginValidation(
                True,
                info={
                    "name": manifest.name,
                    "version": manifest.version,
                    "description": manifest.description,
                    "author": manifest.author,
                    "main": manifest.main,
                },
            )

        if full.is_file() and full.suffix == ".py":
            return PluginValidation(True, info={"type": "single-file", "name": full.stem})

        if not full.exists():
            return PluginValidation(False, f"Plugin path does not exist: {full}")
        return PluginValidation(False, "Invalid plugin format")

    def _descriptor(self, entry: PluginConfigEntry) -> PluginDescriptor:
        full = self.full_path(entry.path)
        if full.exists():
            return PluginDescriptor(entry.name, str(full))
        return PluginDescriptor(
            entry.name,
            str(full),
            valid=False,
            error=f"Plugin path does not exist: {full}",
        )

    def get_descriptor(self, name: str) -> PluginDescriptor:
        """
        Raises:
            PluginHostError: If no such plugin is configured
        """
        entry = self.get_plugin(name)
        if entry is None:
            raise PluginHostError(f"Plugin not configured: {name}")
        return self._descriptor(entry)

    def load_plugins_for_generation(self) -> list[PluginDescriptor]:
        """Descriptors for every enabled plugin, in configuration order."""
        return [self._descriptor(entry) for entry in self.get_enabled_plugins()]
