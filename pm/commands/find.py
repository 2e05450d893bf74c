"""
pm find command (-F).

Show the packages found in archives, descriptor files or directories
holding them.
"""

import sys
from pathlib import Path
from typing import Any

from pm.commands import build_context, build_provider, format_package
from zipkg.provider.errors import ProviderError


def find_command(args: Any) -> int:
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -F <path>...", file=sys.stderr)
        return 1

    fail_count = 0

    with build_provider(args) as provider:
        for target in args.targets:
            path = Path(target)
            context = build_context(args)
            try:
                if path.is_dir():
                    packages = provider.find_all(path, context)
                else:
                    package = provider.find(path, context)
                    packages = [package] if package is not None else []
            except ProviderError as e:
                print(f"Failed to read {target}: {e}", file=sys.stderr)
                fail_count += 1
                continue

            if not packages:
                print(f"{target}: no packages found", file=sys.stderr)

            for package in packages:
                print(format_package(package))

    return 0 if fail_count == 0 else 1
