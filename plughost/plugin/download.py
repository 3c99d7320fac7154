"""
Plugin Downloader.

Fetches a plugin archive (.zip, .tar.gz, .tgz) over HTTP and unpacks it into
the plugins directory. An archive whose members share one top-level directory
is unpacked without that directory.
"""

import logging
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx

from plughost.plugin.errors import PluginDownloadError

_log = logging.getLogger(__name__)

_ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".zip")


def is_url(source: str) -> bool:
    return urlparse(str(source)).scheme in ("http", "https")


def _archive_name(url: str) -> str:
    filename = PurePosixPath(urlparse(url).path).name
    for suffix in _ARCHIVE_SUFFIXES:
        if filename.endswith(suffix):
            return filename[: -len(suffix)]
    raise PluginDownloadError(f"Unsupported archive type: {filename or url}")


def _safe_members(names: list[str], destination: Path) -> None:
    root = destination.resolve()
    for name in names:
        target = (destination / name).resolve()
        if target != root and root not in target.parents:
            raise PluginDownloadError(f"Archive member escapes target directory: {name}")


class PluginDownloader:
    """
    Args:
        plugins_dir: Directory to unpack plugins into
        client: httpx client to use (one is created per download otherwise)
        timeout: Request timeout in seconds
    """

    def __init__(self, plugins_dir: Path, client: httpx.Client | None = None, timeout: float = 60.0):
        self.plugins_dir = Path(plugins_dir)
        self.client = client
        self.timeout = timeout

    def download(self, url: str, name: str | None = None) -> Path:
        """
        Download and unpack a plugin archive.

        Args:
            url: http(s) URL of the archive
            name: Directory name to use (default: archive filename stem)

        Returns:
            The unpacked plugin directory

        Raises:
            PluginDownloadError: If the download or extraction fails, or the
                destination already exists
        """
        archive_name = _archive_name(url)
        destination = self.plugins_dir / (name or archive_name)
        if destination.exists():
            raise PluginDownloadError(f"Plugin directory already exists: {destination}")

        with tempfile.TemporaryDirectory() as tmpdir:
            archive = Path(tmpdir) / PurePosixPath(urlparse(url).path).name
            self._fetch(url, archive)

            staging = Path(tmpdir) / "staging"
            staging.mkdir()
            self._extract(archive, staging)

            children = list(staging.iterdir())
            source = children[0] if len(children) == 1 and children[0].is_dir() else staging

            self.plugins_dir.mkdir(parents=True, exist_ok=True)
            try:
                shutil.copytree(source, destination, symlinks=True)
            except OSError as e:
                raise PluginDownloadError(f"Failed to install into {destination}: {e}") from e

        _log.info("downloaded %s into %s", url, destination)
        return destination

    def _fetch(self, url: str, archive: Path) -> None:
        client = self.client or httpx.Client(timeout=self.timeout)
        try:
            with client.stream("GET", url, follow_redirects=True) as response:
                response.raise_for_status()
                with open(archive, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise PluginDownloadError(f"Failed to download {url}: {e}") from e
        except OSError as e:
            raise PluginDownloadError(f"Failed to save {url} to {archive}: {e}") from e
        finally:
            if self.client is None:
                client.close()

    def _extract(self, archive: Path, staging: Path) -> None:
        try:
            if archive.name.endswith(".zip"):
                with zipfile.ZipFile(archive) as zf:
                    _safe_members(zf.namelist(), staging)
                    zf.extractall(staging)
            else:
                with tarfile.open(archive, "r:gz") as tf:
                    members = tf.getmembers()
                    _safe_members([m.name for m in members], staging)
                    for member in members:
                        if member.issym() or member.islnk():
                            raise PluginDownloadError(
                                f"Archive member is a link: {member.name}"
                            )
                    tf.extractall(staging, filter="data")
        except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
            raise PluginDownloadError(f"Failed to extract {archive.name}: {e}") from e
