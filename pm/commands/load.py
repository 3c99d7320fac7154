"""
pm load command (-L) and module resolution diagnostics (--diagnostics).
"""

import asyncio
import sys
from typing import Any

from plughost.plugin.errors import LoaderUnavailableError

from pm.cli import PMError
from pm.commands.common import open_host


def load_command(args: Any) -> int:
    host = open_host(args)

    try:
        results = asyncio.run(host.manager.ensure_plugins_loaded())
    except LoaderUnavailableError as e:
        raise PMError(str(e)) from e

    if not results:
        print("no plugins enabled")
        return 0

    for result in results:
        if result.success:
            print(f"ok      {result.name}")
        else:
            print(f"failed  {result.name}: {result.error}", file=sys.stderr)

    return 0 if all(r.success for r in results) else 1


def diagnostics_command(args: Any) -> int:
    host = open_host(args)
    for key, value in host.context.diagnostics().items():
        print(f"{key:<24}: {value}")
    return 0
