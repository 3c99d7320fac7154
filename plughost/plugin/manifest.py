"""
Plugin Manifest.

This module reads manifest.json files. Third-party plugins are laid out
inconsistently, so only the JSON shape is enforced: every field is optional,
but a field that is present must have the right type.

Fields consulted:
- main: entry file relative to the manifest's directory
- name, version, description, author: informational
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from plughost.plugin.errors import PluginHostError


class ManifestError(PluginHostError):
    """Raised when a manifest cannot be read or has the wrong shape."""

    pass


@dataclass
class Manifest:
    """
    Represents a plugin manifest.

    Attributes:
        name: Plugin name, if declared
        version: Plugin version, if declared
        main: Entry point file path, if declared
        description: Plugin description
        author: Plugin author
        raw_data: Raw manifest data
    """

    name: str | None
    version: str | None
    main: str | None
    description: str
    author: str
    raw_data: dict[str, Any]


_STRING_FIELDS = ("name", "version", "main", "description", "author")


def parse_manifest(manifest_path: Path) -> Manifest:
    """
    Parse a manifest.json file.

    Args:
        manifest_path: Path to manifest.json

    Returns:
        Manifest object

    Raises:
        ManifestError: If file cannot be read, parsed, or has wrong field types
    """
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest file not found: {manifest_path}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Failed to parse manifest JSON: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Failed to read manifest file: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object: {manifest_path}")

    for field in _STRING_FIELDS:
        if field in data and not isinstance(data[field], str):
            raise ManifestError(f"'{field}' field must be a string")

    main = data.get("main")
    if main is not None and not main.strip():
        main = None

    return Manifest(
        name=data.get("name"),
        version=data.get("version"),
        main=main,
        description=data.get("description", ""),
        author=data.get("author", ""),
        raw_data=data,
    )
