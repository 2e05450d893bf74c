"""
pm upgrade command (-U).

Upgrade installed packages from archives or descriptor files. Targets that
are not installed are skipped; downgrades are refused.
"""

import sys
from typing import Any

from pm.commands import build_context, build_provider, format_package
from zipkg.provider.errors import ProviderError


def upgrade_command(args: Any) -> int:
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -U <path>...", file=sys.stderr)
        return 1

    fail_count = 0

    with build_provider(args) as provider:
        for target in args.targets:
            try:
                package = provider.update(target, build_context(args))
            except ProviderError as e:
                print(f"Failed to upgrade {target}: {e}", file=sys.stderr)
                fail_count += 1
                continue

            if package is None:
                print(f"skipped {target}: not installed")
            else:
                print(f"upgraded {format_package(package)}")

    return 0 if fail_count == 0 else 1
