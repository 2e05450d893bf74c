"""
pm - zipkg package management CLI tool.

Command-line interface over the zipkg package provider: find, query,
install, remove and upgrade.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
