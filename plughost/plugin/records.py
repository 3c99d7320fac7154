"""Data records passed between the configuration store and the lifecycle manager."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class PluginDescriptor:
    """
    One configured plugin, as handed to the lifecycle manager.

    Attributes:
        name: Plugin name
        path: Plugin file or directory
        valid: False when the configuration layer already knows it can't load
        error: Reason for valid=False
    """

    name: str
    path: str
    valid: bool = True
    error: str | None = None


@dataclass(frozen=True)
class ResolvedEntry:
    entry_path: Path
    root_dir: Path


@dataclass(frozen=True)
class LoadResult:
    """Outcome of one plugin in one load batch."""

    name: str
    path: str
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class LoadedPluginRecord:
    name: str
    path: str
    loaded_at: str = field(default_factory=utc_timestamp)


@dataclass
class PluginConfigEntry:
    """
    One row of the plugin configuration file.

    Attributes:
        name: Plugin name (unique within the file)
        path: Absolute path, or path relative to the plugins directory
        type: Where it came from ("local" or "url")
        enabled: Disabled plugins are skipped at load time
        added_at: ISO timestamp of the first add
        updated_at: ISO timestamp of the last change
    """

    name: str
    path: str
    type: str = "local"
    enabled: bool = True
    added_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "type": self.type,
            "enabled": self.enabled,
            "added_at": self.added_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginConfigEntry":
        now = utc_timestamp()
        return cls(
            name=str(data["name"]),
            path=str(data["path"]),
            type=str(data.get("type", "local")),
            enabled=bool(data.get("enabled", True)),
            added_at=str(data.get("added_at", now)),
            updated_at=str(data.get("updated_at", now)),
        )


@dataclass
class PluginValidation:
    valid: bool
    error: str | None = None
    info: dict[str, Any] = field(default_factory=dict)
