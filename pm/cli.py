"""
pm CLI - plughost Plugin Manager.

Pacman-style interface for managing host plugins.

Usage:
    pm -S <path|url> [--as <name>]   Install plugin
    pm -R <plugin> [--purge]         Remove plugin
    pm -Q                            List configured plugins
    pm -Qi <plugin>                  Validate and show plugin info
    pm -L                            Load every enabled plugin
    pm --diagnostics                 Show module resolution diagnostics
"""

import argparse
import sys


class PMError(Exception):
    """Base exception for pm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="pm",
        description="plughost Plugin Manager - Pacman-style plugin manager",
        add_help=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Install plugin")
    ops.add_argument("-R", "--remove", action="store_true", help="Remove plugin")
    ops.add_argument("-Q", "--query", action="store_true", help="Query configured")
    ops.add_argument("-L", "--load", action="store_true", help="Load enabled plugins")
    ops.add_argument(
        "--diagnostics", action="store_true", help="Show module resolution diagnostics"
    )
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # Query sub-flags
    parser.add_argument("-i", "--info", action="store_true", help="Show info (-Qi)")

    # Common options
    parser.add_argument("--as", dest="name", help="Plugin name on -S")
    parser.add_argument("--purge", action="store_true", help="Delete plugin files on -R")
    parser.add_argument("-c", "--config", help="Host settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Positional arguments
    parser.add_argument("targets", nargs="*", help="Plugin names, paths or URLs")

    return parser


def print_help():
    """Print help message."""
    help_text = """
pm - plughost Plugin Manager

Usage:
    pm -S <path|url> [--as <name>]   Install plugin
    pm -R <plugin> [--purge]         Remove plugin
    pm -Q                            List configured plugins
    pm -Qi <plugin>                  Validate and show plugin info
    pm -L                            Load every enabled plugin
    pm --diagnostics                 Show module resolution diagnostics

Options:
    --as <name>                  Plugin name to install under (-S)
    --purge                      Delete plugin files on -R
    -c, --config <file>          Host settings file
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        # Show help
        if args.help or not (
            args.sync or args.remove or args.query or args.load or args.diagnostics
        ):
            print_help()
            return 0

        # Route to appropriate command
        if args.sync:
            # -S: Install
            from pm.commands.install import install_command

            return install_command(args)

        elif args.remove:
            # -R: Remove
            from pm.commands.remove import remove_command

            return remove_command(args)

        elif args.query:
            # -Q: Query
            from pm.commands.query import query_command

            return query_command(args)

        elif args.load:
            # -L: Load
            from pm.commands.load import load_command

            return load_command(args)

        else:
            from pm.commands.load import diagnostics_command

            return diagnostics_command(args)

    except PMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
