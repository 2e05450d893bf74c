"""
zipkg Package Provider - package lifecycle engine.

This module handles:
- Descriptor resolution from zip archives and descriptor files
- The installed-package cache
- Install/uninstall lifecycle scripts
- Find, get, install, uninstall and update operations
"""

from zipkg.provider.context import Channel, OperationContext, ScriptParameters, TraceEvent
from zipkg.provider.descriptor import Package, PackageSource, Version, resolve
from zipkg.provider.engine import PackageProvider
from zipkg.provider.errors import (
    DescriptorNotFound,
    DescriptorParseError,
    DowngradeRejected,
    FilesystemError,
    NotAPackage,
    ProviderError,
    ScriptExecutionFailure,
)

__all__ = [
    "Channel",
    "DescriptorNotFound",
    "DescriptorParseError",
    "DowngradeRejected",
    "FilesystemError",
    "NotAPackage",
    "OperationContext",
    "Package",
    "PackageProvider",
    "PackageSource",
    "ProviderError",
    "ScriptExecutionFailure",
    "ScriptParameters",
    "TraceEvent",
    "Version",
    "resolve",
]
