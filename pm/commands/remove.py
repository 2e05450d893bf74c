"""
pm remove command (-R).

Uninstall packages by name or wildcard pattern.
"""

import sys
from typing import Any

from pm.commands import build_context, build_provider, format_package


def remove_command(args: Any) -> int:
    """
    Execute remove command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if anything failed or matched nothing)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -R <name>...", file=sys.stderr)
        return 1

    exit_code = 0

    with build_provider(args) as provider:
        for name in args.targets:
            context = build_context(args, name)
            removed = provider.uninstall(context)

            for package in removed:
                print(f"removed {format_package(package)}")

            for error in context.errors:
                print(f"Failed to remove {name}: {error}", file=sys.stderr)
                exit_code = 1

            if not removed and not context.errors:
                print(f"error: target not found: {name}", file=sys.stderr)
                exit_code = 1

    return exit_code
