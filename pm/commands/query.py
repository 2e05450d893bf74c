"""
pm query command (-Q).

List installed packages, optionally filtered by name pattern and version.
"""

from typing import Any

from pm.commands import build_context, build_provider, format_package


def query_command(args: Any) -> int:
    """
    Execute query command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if at least one package matched or no filter was given)
    """
    patterns = args.targets or [None]
    found = False

    with build_provider(args) as provider:
        for pattern in patterns:
            context = build_context(args, pattern)
            for package in provider.get(context, install_path=args.install_path):
                print(format_package(package))
                found = True

    return 0 if found or not args.targets else 1
