"""
Plugin Root Locator.

Walks up from an entry file to the nearest directory holding a manifest.
That directory is where dependency links are placed.
"""

import logging
from pathlib import Path

_log = logging.getLogger(__name__)

MAX_DEPTH = 10


class PluginRootLocator:
    """Finds the directory that bounds a plugin package: the nearest one holding a manifest."""

    def __init__(self, manifest_name: str = "manifest.json", max_depth: int = MAX_DEPTH):
        self.manifest_name = manifest_name
        self.max_depth = max_depth

    def locate(self, entry_path: str | Path) -> Path:
        start = Path(entry_path).parent
        current = start

        for _ in range(self.max_depth):
            if (current / self.manifest_name).is_file():
                return current
            if current.parent == current:
                break
            current = current.parent

        _log.warning(
            "no %s within %d levels above %s, using %s as plugin root",
            self.manifest_name,
            self.max_depth,
            entry_path,
            start,
        )
        return start
