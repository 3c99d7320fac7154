"""
pm query command (-Q, -Qi).
"""

import sys
from typing import Any

from plughost.plugin.store import PluginConfigStore

from pm.commands.common import open_host


def query_command(args: Any) -> int:
    host = open_host(args)

    if args.info:
        if not args.targets:
            print("Error: No targets specified", file=sys.stderr)
            print("Usage: pm -Qi <plugin>", file=sys.stderr)
            return 1
        return show_info(host.store, args.targets)

    entries = host.store.get_plugins()
    if args.targets:
        entries = [e for e in entries if e.name in args.targets]

    for entry in entries:
        state = "enabled" if entry.enabled else "disabled"
        print(f"{entry.name} [{state}] {entry.path}")

        if args.verbose:
            print(f"    type: {entry.type}")
            print(f"    added: {entry.added_at}")
            print(f"    updated: {entry.updated_at}")

    return 0


def show_info(store: PluginConfigStore, names: list[str]) -> int:
    """Print validation details for each named plugin."""
    failed = 0
    for name in names:
        entry = store.get_plugin(name)
        if entry is None:
            print(f"Error: plugin not found: {name}", file=sys.stderr)
            failed += 1
            continue

        validation = store.validate_plugin(entry.path)
        print(f"Name        : {entry.name}")
        print(f"Path        : {store.full_path(entry.path)}")
        print(f"Type        : {entry.type}")
        print(f"Enabled     : {'yes' if entry.enabled else 'no'}")
        print(f"Valid       : {'yes' if validation.valid else 'no'}")
        if validation.error:
            print(f"Error       : {validation.error}")
            failed += 1
        for key, value in validation.info.items():
            if value:
                print(f"{key.capitalize():<12}: {value}")
        print()

    return 0 if failed == 0 else 1
