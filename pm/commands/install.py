"""
pm install command (-S).

Install plugins from a local path or an archive URL.
"""

import asyncio
import sys
from typing import Any

from plughost.app import PluginHost
from plughost.plugin.errors import PluginHostError

from pm.commands.common import open_host


def install_command(args: Any) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -S <path|url> [--as <name>]", file=sys.stderr)
        return 1
    if args.name and len(args.targets) > 1:
        print("Error: --as takes a single target", file=sys.stderr)
        return 1

    host = open_host(args)

    # Run async install
    return asyncio.run(install_async(host, args))


async def install_async(host: PluginHost, args: Any) -> int:
    """Async install implementation."""
    success_count = 0
    fail_count = 0

    for target in args.targets:
        try:
            result = await host.installer.install(target, args.name)
        except PluginHostError as e:
            print(f"Failed to install {target}: {e}", file=sys.stderr)
            fail_count += 1
            continue

        if result.success:
            print(f"installed {result.name} ({result.path})")
            success_count += 1
        else:
            print(f"Failed to install {target}: {result.error}", file=sys.stderr)
            fail_count += 1

    # Summary
    if args.verbose:
        print(f"\nInstalled: {success_count}, Failed: {fail_count}")

    return 0 if fail_count == 0 else 1
