"""
pm remove command (-R).
"""

import asyncio
import sys
from typing import Any

from pm.commands.common import open_host


def remove_command(args: Any) -> int:
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -R <plugin> [--purge]", file=sys.stderr)
        return 1

    host = open_host(args)

    async def remove_all() -> int:
        missing = 0
        for name in args.targets:
            if await host.installer.uninstall(name, delete_source=args.purge):
                print(f"removed {name}")
            else:
                print(f"Error: plugin not found: {name}", file=sys.stderr)
                missing += 1
        return 0 if missing == 0 else 1

    return asyncio.run(remove_all())
