"""
pm CLI - zipkg package manager front end.

Pacman-style interface over the package provider.

Usage:
    pm -F <path>...              Find packages in archives, descriptors or directories
    pm -Q [pattern]              List installed packages
    pm -S <path>...              Install packages
    pm -R <name>...              Remove installed packages
    pm -U <path>...              Upgrade installed packages
"""

import argparse
import sys

from zipkg.config import ConfigError
from zipkg.provider.errors import ProviderError


class PMError(Exception):
    """Base exception for pm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="pm",
        description="zipkg package manager - pacman-style front end",
        add_help=False,
    )

    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-F", "--find", action="store_true", help="Find packages")
    ops.add_argument("-S", "--sync", action="store_true", help="Install packages")
    ops.add_argument("-R", "--remove", action="store_true", help="Remove packages")
    ops.add_argument("-U", "--upgrade", action="store_true", help="Upgrade packages")
    ops.add_argument("-Q", "--query", action="store_true", help="Query installed")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    parser.add_argument("--version", dest="package_version", help="Exact version filter")
    parser.add_argument("--install-path", help="Cache root to query (-Q only)")
    parser.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Lifecycle script parameter",
    )

    parser.add_argument("-c", "--config", help="Configuration file")
    parser.add_argument("--cache-root", help="Override the configured cache root")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    parser.add_argument("targets", nargs="*", help="Package paths or names")

    return parser


def print_help():
    """Print help message."""
    help_text = """
pm - zipkg package manager

Usage:
    pm -F <path>...              Find packages in archives, descriptors or directories
    pm -Q [pattern]              List installed packages
    pm -S <path>...              Install packages
    pm -R <name>...              Remove installed packages
    pm -U <path>...              Upgrade installed packages

Options:
    --version VERSION            Exact version filter (-Q, -R)
    --install-path PATH          Cache root to query (-Q)
    -p, --param KEY=VALUE        Lifecycle script parameter (-S, -R, -U)
    -c, --config PATH            Configuration file (default: zipkg.toml)
    --cache-root PATH            Override the configured cache root
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.help or not (
            args.find or args.sync or args.remove or args.upgrade or args.query
        ):
            print_help()
            return 0

        if args.find:
            from pm.commands.find import find_command

            return find_command(args)

        elif args.query:
            from pm.commands.query import query_command

            return query_command(args)

        elif args.sync:
            from pm.commands.install import install_command

            return install_command(args)

        elif args.remove:
            from pm.commands.remove import remove_command

            return remove_command(args)

        elif args.upgrade:
            from pm.commands.upgrade import upgrade_command

            return upgrade_command(args)

    except (PMError, ConfigError, ProviderError) as e:
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

    return 0


if __name__ == "__main__":
    sys.exit(main())
