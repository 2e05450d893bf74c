"""
Installed Package Cache.

Layout: one directory per installed package under the cache root, named
after the package and holding its descriptor plus an optional tools/
directory. Nothing here locks the root; concurrent processes working on the
same root race and the last writer wins.
"""

import logging
import shutil
from collections.abc import Iterator
from pathlib import Path

from zipkg.provider.descriptor import DESCRIPTOR_FILENAME
from zipkg.provider.errors import FilesystemError

logger = logging.getLogger(__name__)

TOOLS_DIR = "tools"


class CacheStore:
    """Reads and mutates installed packages under a root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def package_dir(self, name: str) -> Path:
        return self.root / name

    def list_descriptors(self) -> Iterator[Path]:
        """
        Lazily yield root/*/DESCRIPTOR_FILENAME.

        A missing root yields nothing.
        """
        if not self.root.is_dir():
            return

        for child in sorted(self.root.iterdir()):
            descriptor = child / DESCRIPTOR_FILENAME
            if child.is_dir() and descriptor.is_file():
                yield descriptor

    def stage(self, name: str, staging_dir: Path) -> Path:
        """
        Replace or create a package directory from a staging directory.

        The existing directory contents are deleted first, then the staged
        descriptor and tools/ directory are moved in. A failure part way
        leaves the package directory partially populated; re-running the
        install recovers it.

        Args:
            name: Package name
            staging_dir: Directory holding the staged descriptor

        Returns:
            The package directory

        Raises:
            FilesystemError: If clearing, creating or moving fails
        """
        target = self.package_dir(name)

        try:
            if target.exists():
                logger.debug("Clearing %s", target)
                for child in target.iterdir():
                    if child.is_dir() and not child.is_symlink():
                        shutil.rmtree(child)
                    else:
                        child.unlink()
            else:
                target.mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(f"Failed to prepare {target} for {name}: {e}") from e

        try:
            shutil.move(str(staging_dir / DESCRIPTOR_FILENAME), str(target / DESCRIPTOR_FILENAME))

            tools = staging_dir / TOOLS_DIR
            if tools.is_dir():
                shutil.move(str(tools), str(target / TOOLS_DIR))
        except OSError as e:
            raise FilesystemError(f"Failed to stage {name} into {target}: {e}") from e

        logger.debug("Staged %s into %s", name, target)
        return target

    def remove(self, package_dir: Path) -> None:
        """
        Delete a package directory recursively.

        Raises:
            FilesystemError: If any part of the directory cannot be removed;
                the directory may be left partially removed
        """
        try:
            shutil.rmtree(package_dir)
        except FileNotFoundError:
            return
        except OSError as e:
            raise FilesystemError(f"Failed to remove {package_dir}: {e}") from e

        logger.debug("Removed %s", package_dir)
