"""
Dependency Linker.

Grafts the host's shared dependencies into a plugin's own dependency
directory with symlinks, so a plugin imports the host's copy of the core
library and everything it needs.

Layout produced inside <plugin_root>/<dependency_dir>:
- <core_package>/   real directory, one symlink per top-level entry of the
                    host's core package (so sibling content can be overlaid)
- <vendored deps>   one symlink per entry of the core package's vendor dir
- <other deps>      one symlink per remaining entry of the host's directory

A plugin that already ships its own dependency directory is left alone, and
an existing entry is never replaced. Every failure is logged and skipped.
cleanup() only undoes directories carrying the LINK_MARKER file.
Existence checks and creation are not atomic; two processes linking the same
plugin at once can race.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from plughost.plugin.errors import DependencyLinkWarning
from plughost.resolution.context import ModuleResolutionContext

_log = logging.getLogger(__name__)

_ALWAYS_SKIPPED = {"__pycache__"}

# Written into every dependency directory link() creates
LINK_MARKER = ".plughost-links"


@dataclass
class LinkReport:
    """
    Result of one link() call.

    Attributes:
        plugin_root: Plugin root directory
        status: "existing", "unavailable", "failed" or "linked"
        created: Symlinks created
        skipped: Symlink targets that already existed
        failed: Symlinks that could not be created
    """

    plugin_root: Path
    status: str
    created: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)


def _is_hidden(entry: Path) -> bool:
    return entry.name.startswith(".") or entry.name in _ALWAYS_SKIPPED


class DependencyLinker:
    def __init__(
        self,
        context: ModuleResolutionContext,
        dependency_dir: str = "site-packages",
        vendor_dir: str = "_vendor",
        manifest_name: str = "manifest.json",
    ):
        self.context = context
        self.dependency_dir = dependency_dir
        self.vendor_dir = vendor_dir
        self.manifest_name = manifest_name

    @property
    def core_package(self) -> str:
        return self.context.core_package

    def link(self, plugin_root: str | Path) -> LinkReport:
        plugin_root = Path(plugin_root)
        target = plugin_root / self.dependency_dir

        if os.path.lexists(target):
            _log.debug("%s already exists, not linking", target)
            return LinkReport(plugin_root, "existing")

        shared = self.context.shared_dependency_path()
        if not shared.is_dir():
            _log.warning(
                "host dependency directory %s missing, %s relies on the search path only",
                shared,
                plugin_root,
            )
            return LinkReport(plugin_root, "unavailable")

        try:
            target.mkdir()
        except OSError as e:
            _log.warning("could not create %s: %s", target, e)
            return LinkReport(plugin_root, "failed")

        try:
            (target / LINK_MARKER).write_text("")
        except OSError as e:
            _log.warning("could not mark %s as linker-owned: %s", target, e)

        report = LinkReport(plugin_root, "linked")
        core_src = shared / self.core_package

        self._link_core_package(core_src, target, report)
        self._link_vendored(core_src / self.vendor_dir, target, report)
        self._link_shared(shared, target, report)

        _log.info(
            "linked dependencies for %s: %d created, %d skipped, %d failed",
            plugin_root,
            len(report.created),
            len(report.skipped),
            len(report.failed),
        )
        return report

    def _link_core_package(self, core_src: Path, target: Path, report: LinkReport) -> None:
        if not core_src.is_dir():
            _log.warning("core package %s not found, skipping", core_src)
            return

        core_dst = target / self.core_package
        try:
            core_dst.mkdir(exist_ok=True)
        except OSError as e:
            _log.warning("could not create %s: %s", core_dst, e)
            return

        self._link_entries(
            core_src,
            core_dst,
            report,
            skip=lambda entry: _is_hidden(entry) or entry.name == self.manifest_name,
        )

    def _link_vendored(self, vendor_src: Path, target: Path, report: LinkReport) -> None:
        if not vendor_src.is_dir():
            return
        self._link_entries(vendor_src, target, report, skip=_is_hidden)

    def _link_shared(self, shared: Path, target: Path, report: LinkReport) -> None:
        self._link_entries(
            shared,
            target,
            report,
            skip=lambda entry: _is_hidden(entry) or entry.name == self.core_package,
        )

    def _link_entries(self, source_dir: Path, dest_dir: Path, report: LinkReport, skip) -> None:
        try:
            entries = sorted(source_dir.iterdir())
        except OSError as e:
            _log.warning("could not list %s: %s", source_dir, e)
            return

        for entry in entries:
            if skip(entry):
                continue
            dest = dest_dir / entry.name
            if os.path.lexists(dest):
                report.skipped.append(dest)
                continue
            try:
                self._symlink(entry, dest)
            except DependencyLinkWarning as w:
                _log.warning("%s", w)
                report.failed.append(dest)
            else:
                report.created.append(dest)

    def _symlink(self, source: Path, dest: Path) -> None:
        try:
            os.symlink(source, dest, target_is_directory=source.is_dir())
        except OSError as e:
            raise DependencyLinkWarning(f"could not link {dest} -> {source}: {e}") from e

    def cleanup(self, plugin_root: str | Path) -> int:
        """
        Remove the symlinks link() created for a plugin.

        Only a dependency directory carrying link()'s marker is touched, and
        only links pointing into the host's dependency directory are removed.
        The dependency directory and core mirror are removed only if they end
        up empty.

        Returns:
            Number of symlinks removed
        """
        target = Path(plugin_root) / self.dependency_dir
        marker = target / LINK_MARKER
        if target.is_symlink() or not marker.is_file():
            _log.debug("%s was not created by the linker, leaving it alone", target)
            return 0

        shared = Path(os.path.abspath(self.context.shared_dependency_path()))
        removed = self._remove_symlinks(target / self.core_package, shared)
        removed += self._remove_symlinks(target, shared)

        try:
            marker.unlink()
        except OSError as e:
            _log.warning("could not remove %s: %s", marker, e)

        for directory in (target / self.core_package, target):
            try:
                if directory.is_dir() and not directory.is_symlink() and not any(directory.iterdir()):
                    directory.rmdir()
            except OSError as e:
                _log.warning("could not remove %s: %s", directory, e)

        _log.info("removed %d dependency links from %s", removed, plugin_root)
        return removed

    def _remove_symlinks(self, directory: Path, shared: Path) -> int:
        if directory.is_symlink() or not directory.is_dir():
            return 0
        removed = 0
        for entry in directory.iterdir():
            if not entry.is_symlink():
                continue
            pointee = Path(os.path.abspath(os.path.join(entry.parent, os.readlink(entry))))
            if not pointee.is_relative_to(shared):
                continue
            try:
                entry.unlink()
                removed += 1
            except OSError as e:
                _log.warning("could not remove link %s: %s", entry, e)
        return removed
