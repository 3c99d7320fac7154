"""Resolution of a configured plugin path to the file that should be loaded."""

import logging
import os
from pathlib import Path

from plughost.plugin.errors import EntryPointNotFoundError
from plughost.plugin.manifest import ManifestError, parse_manifest

_log = logging.getLogger(__name__)


class PluginEntryResolver:
    """
    Finds a plugin's entry file.

    Order of precedence for a directory: the manifest's "main", then the
    conventional entry filename. A file path is returned as given.
    """

    def __init__(self, manifest_name: str = "manifest.json", default_entry: str = "plugin.py"):
        self.manifest_name = manifest_name
        self.default_entry = default_entry

    def resolve(self, path: str | Path) -> Path:
        """
        Resolve a plugin path to its entry file.

        Raises:
            EntryPointNotFoundError: If no entry file can be found
        """
        path = Path(path)

        if path.is_file():
            return path

        if not path.is_dir():
            raise EntryPointNotFoundError(f"Plugin path does not exist: {path}")

        directory = Path(os.path.abspath(path))

        main = self._manifest_main(directory)
        if main is not None:
            candidate = directory / main
            if candidate.is_file():
                return candidate
            _log.warning(
                "manifest main '%s' not found in %s, trying %s",
                main,
                directory,
                self.default_entry,
            )

        candidate = directory / self.default_entry
        if candidate.is_file():
            return candidate

        raise EntryPointNotFoundError(
            f"No entry point in {directory}: expected '{self.manifest_name}' "
            f"with a 'main' field or a '{self.default_entry}' file"
        )

    def _manifest_main(self, directory: Path) -> str | None:
        manifest_path = directory / self.manifest_name
        if not manifest_path.is_file():
            return None
        try:
            return parse_manifest(manifest_path).main
        except ManifestError as e:
            _log.warning("ignoring unreadable manifest %s: %s", manifest_path, e)
            return None
