"""
Module Resolution Context.

Plugins live in the user's data directory but import packages that ship with
the host. When the host runs from an application archive (a .pyz or .zip that
the interpreter executes in place), native extension modules inside the
archive cannot be imported, so the host's dependency tree must be taken from
the unpacked mirror that sits next to the archive on disk.

One ModuleResolutionContext is built at process start and injected wherever
these paths are needed. Every value is computed lazily and memoized until
reset().
"""

import logging
import os
import re
import sys
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_log = logging.getLogger(__name__)

UNPACKED_SUFFIX = ".unpacked"

# An archive component: "<name>.pyz" or "<name>.zip" followed by a separator
# or the end of the path.
_ARCHIVE_COMPONENT = re.compile(r"\.(pyz|zip)(?=$|[\\/])")


def _default_packaged_signal() -> bool:
    return bool(getattr(sys, "frozen", False))


def _default_app_path() -> str:
    bundle_dir = getattr(sys, "_MEIPASS", None)
    if bundle_dir:
        return str(bundle_dir)
    return os.path.abspath(sys.argv[0]) if sys.argv and sys.argv[0] else os.getcwd()


def unpacked_path(app_path: str) -> str:
    """
    Map an application path to its unpacked mirror.

    Example:
        /opt/host/host.pyz/app     -> /opt/host/host.pyz.unpacked/app
        /opt/host/host.pyz.unpacked -> unchanged
        /opt/host                   -> unchanged
    """
    if UNPACKED_SUFFIX in app_path:
        return app_path
    return _ARCHIVE_COMPONENT.sub(rf".\1{UNPACKED_SUFFIX}", app_path, count=1)


@dataclass(frozen=True)
class ModulePathContext:
    is_production: bool
    base_path: Path
    shared_dependency_path: Path


class ModuleResolutionContext:
    """
    Computes the paths needed to resolve host dependencies from plugins.

    Args:
        dependency_dir: Name of the host's dependency directory
        core_package: Name of the core library package
        search_path_var: Environment variable used as module search path
        packaged_signal: Returns True when running from a packaged build
        app_path: Returns the packaged application path
        cwd: Returns the working directory (development base path)
        environ: Environment mapping to mutate (default: os.environ)
        sys_path: Interpreter search list to mutate (default: sys.path)
    """

    def __init__(
        self,
        dependency_dir: str = "site-packages",
        core_package: str = "effectgen",
        search_path_var: str = "PYTHONPATH",
        packaged_signal: Callable[[], bool] = _default_packaged_signal,
        app_path: Callable[[], str] = _default_app_path,
        cwd: Callable[[], str] = os.getcwd,
        environ: MutableMapping[str, str] | None = None,
        sys_path: list[str] | None = None,
    ):
        self.dependency_dir = dependency_dir
        self.core_package = core_package
        self.search_path_var = search_path_var
        self._packaged_signal = packaged_signal
        self._app_path = app_path
        self._cwd = cwd
        self._environ = os.environ if environ is None else environ
        self._sys_path = sys.path if sys_path is None else sys_path

        self._is_production: bool | None = None
        self._base_path: Path | None = None
        self._shared_dependency_path: Path | None = None

    def reset(self) -> None:
        """Drop every memoized value."""
        self._is_production = None
        self._base_path = None
        self._shared_dependency_path = None

    def is_production(self) -> bool:
        if self._is_production is None:
            self._is_production = bool(self._packaged_signal())
        return self._is_production

    def base_path(self) -> Path:
        if self._base_path is None:
            if self.is_production():
                self._base_path = Path(unpacked_path(self._app_path()))
            else:
                self._base_path = Path(self._cwd())
        return self._base_path

    def shared_dependency_path(self) -> Path:
        if self._shared_dependency_path is None:
            path = self.base_path() / self.dependency_dir
            if not path.is_dir():
                _log.warning("shared dependency directory does not exist: %s", path)
            self._shared_dependency_path = path
        return self._shared_dependency_path

    def core_package_path(self) -> Path:
        return self.shared_dependency_path() / self.core_package

    def path_context(self) -> ModulePathContext:
        return ModulePathContext(
            is_production=self.is_production(),
            base_path=self.base_path(),
            shared_dependency_path=self.shared_dependency_path(),
        )

    def configure_search_path(self) -> str:
        """
        Put the shared dependency directory first on the module search path.

        Any earlier occurrence of the same entry is dropped before prepending,
        in both the environment variable and sys.path, so calling this
        repeatedly never grows either.

        Returns:
            The new value of the search path variable
        """
        shared = str(self.shared_dependency_path())
        existing = self._environ.get(self.search_path_var, "")
        entries = [e for e in existing.split(os.pathsep) if e and e != shared]
        value = os.pathsep.join([shared, *entries])
        self._environ[self.search_path_var] = value

        while shared in self._sys_path:
            self._sys_path.remove(shared)
        self._sys_path.insert(0, shared)

        _log.info("%s configured: %s", self.search_path_var, value)
        return value

    def diagnostics(self) -> dict[str, Any]:
        shared = self.shared_dependency_path()
        core = self.core_package_path()
        return {
            "is_production": self.is_production(),
            "base_path": str(self.base_path()),
            "shared_dependency_path": str(shared),
            "shared_dependency_exists": shared.is_dir(),
            "core_package_path": str(core),
            "core_package_exists": core.exists(),
        }
