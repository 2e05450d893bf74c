"""
pm install command (-S).

Install packages from zip archives or descriptor files.
"""

import sys
from typing import Any

from pm.commands import build_context, build_provider, format_package
from zipkg.provider.errors import ProviderError


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
        print("Usage: pm -S <path>...", file=sys.stderr)
        return 1

    success_count = 0
    fail_count = 0

    with build_provider(args) as provider:
        for target in args.targets:
            try:
                package = provider.install(target, build_context(args))
                print(f"installed {format_package(package)}")
                success_count += 1
            except ProviderError as e:
                print(f"Failed to install {target}: {e}", file=sys.stderr)
                fail_count += 1

    if args.verbose:
        print(f"\nInstalled: {success_count}, Failed: {fail_count}")

    return 0 if fail_count == 0 else 1
