"""
zipkg - Package provider for zip-archived packages.

This is the main package that exports the public API.
"""

__version__ = "0.1.0"

from zipkg.config import ProviderConfig, load_config
from zipkg.provider import (
    OperationContext,
    Package,
    PackageProvider,
    ProviderError,
    ScriptParameters,
    Version,
)

__all__ = [
    "__version__",
    "OperationContext",
    "Package",
    "PackageProvider",
    "ProviderConfig",
    "ProviderError",
    "ScriptParameters",
    "Version",
    "load_config",
]
