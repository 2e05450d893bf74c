"""Shared helpers for pm commands."""

from pathlib import Path
from typing import Any

from zipkg.config import load_config
from zipkg.logging import setup_logging
from zipkg.provider import OperationContext, Package, PackageProvider, ScriptParameters


def build_provider(args: Any) -> PackageProvider:
    """
    Load configuration, set up logging and construct the provider.

    Args:
        args: Parsed command-line arguments

    Returns:
        PackageProvider instance
    """
    config = load_config(Path(args.config) if args.config else None)
    if args.cache_root:
        config.cache_root = Path(args.cache_root).expanduser()

    setup_logging("DEBUG" if args.verbose else config.log_level)
    return PackageProvider(config)


def build_context(args: Any, name: str | None = None) -> OperationContext:
    return OperationContext(
        name=name,
        version=getattr(args, "package_version", None),
        parameters=ScriptParameters.from_pairs(getattr(args, "param", [])),
    )


def format_package(package: Package) -> str:
    return f"{package.name} {package.version}  {package.source.location}"
