"""
Package Lifecycle Engine.

This module orchestrates find/get/install/uninstall/update over the
descriptor resolver, the cache store and the lifecycle script runner.

Key features:
- Idempotent install (same name and version is a no-op)
- Staging in a temporary directory before touching the cache
- Per-package error isolation on uninstall
- Update never downgrades

Operations run one at a time and block until done, including any
lifecycle script they start.
"""

import logging
import shutil
import tempfile
import zipfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from zipkg.config import ProviderConfig
from zipkg.provider.cache import TOOLS_DIR, CacheStore
from zipkg.provider.context import OperationContext
from zipkg.provider.descriptor import (
    DESCRIPTOR_FILENAME,
    Package,
    find_descriptor_entry,
    is_package_path,
    resolve,
)
from zipkg.provider.errors import (
    DescriptorParseError,
    DowngradeRejected,
    FilesystemError,
    NotAPackage,
    ProviderError,
)
from zipkg.provider.scripts import Phase, run_script

logger = logging.getLogger(__name__)


class PackageProvider:
    """
    Package lifecycle engine.

    Construct one per configuration and call close() (or use it as a
    context manager) when done; there is no global registration.
    """

    def __init__(self, config: ProviderConfig):
        """
        Initialize PackageProvider.

        Args:
            config: Provider configuration (cache root, script timeout)
        """
        self.config = config
        self.cache = CacheStore(config.cache_root)
        self._closed = False

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "PackageProvider":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ProviderError("Package provider has been closed")

    def find(self, path: Path | str, context: OperationContext | None = None) -> Package | None:
        """
        Resolve a package from an archive or descriptor path.

        Args:
            path: Candidate path
            context: Operation context

        Returns:
            Package record, or None if the path is not a package

        Raises:
            DescriptorNotFound: If an archive has no descriptor
            DescriptorParseError: If the descriptor is malformed
        """
        self._check_open()
        context = context or OperationContext()

        package = resolve(path, self.config)
        if package is None:
            context.debug(f"{path} is not a package")
        else:
            context.verbose(f"Found {package.name} {package.version} at {path}")
        return package

    def find_all(
        self, directory: Path | str, context: OperationContext | None = None
    ) -> list[Package]:
        """
        Find every package file directly inside a directory.

        Unreadable candidates are reported as warnings and skipped.

        Raises:
            FilesystemError: If the directory cannot be listed
        """
        self._check_open()
        context = context or OperationContext()
        directory = Path(directory)

        try:
            candidates = sorted(p for p in directory.iterdir() if p.is_file())
        except OSError as e:
            raise FilesystemError(f"Failed to list {directory}: {e}") from e

        packages = []
        for candidate in candidates:
            if not is_package_path(candidate):
                continue
            try:
                package = self.find(candidate, context)
            except ProviderError as e:
                context.warning(f"Skipping {candidate}: {e}")
                continue
            if package is not None and context.is_match(package):
                packages.append(package)
        return packages

    def get(
        self,
        context: OperationContext | None = None,
        name: str | None = None,
        version: str | None = None,
        install_path: Path | str | None = None,
    ) -> list[Package]:
        """
        List installed packages matching a name and version.

        Args:
            context: Operation context; name or version left as None
                fall back to its filters
            name: Exact name or wildcard pattern
            version: Exact version
            install_path: Cache root to enumerate instead of the configured one

        Returns:
            Matching packages (empty when nothing matches)
        """
        self._check_open()
        context = context or OperationContext()
        if name is not None or version is not None:
            context = context.with_filter(name, version)

        store = CacheStore(Path(install_path)) if install_path else self.cache

        packages = []
        for descriptor in store.list_descriptors():
            try:
                package = resolve(descriptor, self.config)
            except ProviderError as e:
                context.debug(f"Ignoring {descriptor.parent}: {e}")
                continue
            if package is not None and context.is_match(package):
                packages.append(package)
        return packages

    def list_installed(self) -> list[Package]:
        """List every installed package."""
        return self.get()

    def install(
        self, target: Package | Path | str, context: OperationContext | None = None
    ) -> Package:
        """
        Install a package, replacing any other installed version.

        Installing the version that is already installed returns the
        installed package without staging or running scripts.

        Args:
            target: Archive or descriptor path, or a package record
            context: Operation context

        Returns:
            The installed package

        Raises:
            NotAPackage: If the path has an unsupported suffix
            DescriptorNotFound: If an archive has no descriptor
            DescriptorParseError: If the descriptor is malformed
            ScriptExecutionFailure: If the install script fails
            FilesystemError: If extraction or staging fails
        """
        self._check_open()
        context = context or OperationContext()
        package = self._resolve_target(target, context)

        current = self._installed(package.name, context)
        if current:
            installed = max(current, key=lambda p: p.version)
            if installed.version == package.version:
                context.verbose(
                    f"{package.name} {package.version} is already installed"
                )
                return installed

        return self._install(package, context)

    def _install(self, package: Package, context: OperationContext) -> Package:
        target_dir = self.cache.package_dir(package.name)
        context.verbose(
            f"Installing {package.name} {package.version} from {package.source.location}"
        )

        with tempfile.TemporaryDirectory(prefix="zipkg-") as tmp:
            staging = self._extract(package, Path(tmp))
            run_script(
                staging,
                Phase.INSTALL,
                context,
                package=package,
                install_dir=target_dir,
                timeout=self.config.script_timeout,
            )
            self.cache.stage(package.name, staging)

        installed = resolve(target_dir / DESCRIPTOR_FILENAME, self.config)
        context.info(f"Installed {installed.name} {installed.version}")
        return installed

    def _extract(self, package: Package, staging: Path) -> Path:
        """
        Copy a package's contents into a staging directory.

        Returns:
            The staged package root (the directory holding the descriptor)

        Raises:
            FilesystemError: If extraction fails or an entry escapes staging
            DescriptorParseError: If the archive is corrupt
        """
        location = package.source.location

        if not package.is_archive:
            try:
                shutil.copyfile(location, staging / DESCRIPTOR_FILENAME)
                tools = location.parent / TOOLS_DIR
                if tools.is_dir():
                    shutil.copytree(tools, staging / TOOLS_DIR)
            except OSError as e:
                raise FilesystemError(f"Failed to stage {location}: {e}") from e
            return staging

        try:
            with zipfile.ZipFile(location) as archive:
                for name in archive.namelist():
                    entry = PurePosixPath(name.replace("\\", "/"))
                    if entry.is_absolute() or ".." in entry.parts:
                        raise FilesystemError(
                            f"Archive {location} contains unsafe entry: {name}"
                        )
                descriptor = find_descriptor_entry(archive, location)
                archive.extractall(staging)
        except zipfile.BadZipFile as e:
            raise DescriptorParseError(f"Invalid zip archive {location}: {e}") from e
        except OSError as e:
            raise FilesystemError(f"Failed to extract {location}: {e}") from e

        root = PurePosixPath(descriptor.filename.replace("\\", "/")).parent
        logger.debug("Extracted %s into %s", location, staging)
        return staging.joinpath(*root.parts)

    def uninstall(
        self,
        context: OperationContext | None = None,
        name: str | None = None,
        version: str | None = None,
        packages: Iterable[Package] | None = None,
    ) -> list[Package]:
        """
        Uninstall packages by name (and version) or from package records.

        A failure is recorded on the context with write_error() and the
        remaining packages are still processed.

        Args:
            context: Operation context
            name: Exact name or wildcard pattern
            version: Exact version
            packages: Package records to uninstall instead of a name lookup

        Returns:
            The packages that were removed

        Raises:
            ProviderError: If neither a name nor package records are given
        """
        self._check_open()
        context = context or OperationContext()

        if packages is not None:
            targets = list(packages)
        elif name is not None or context.name is not None:
            targets = self.get(context, name=name, version=version)
        else:
            raise ProviderError("Uninstall needs a package name or package records")

        if not targets:
            context.verbose("No matching installed packages")

        removed = []
        for package in targets:
            try:
                if self._uninstall(package, context):
                    removed.append(package)
            except ProviderError as e:
                context.write_error(e)
        return removed

    def _uninstall(self, package: Package, context: OperationContext) -> bool:
        package_dir = package.directory

        # Records found elsewhere map to the installed copy of the same version
        if package_dir.parent.resolve() != self.cache.root.resolve():
            installed = [
                p for p in self._installed(package.name, context)
                if p.version == package.version
            ]
            if not installed:
                context.debug(f"{package.name} {package.version} is not installed")
                return False
            package_dir = installed[0].directory

        if not package_dir.is_dir():
            context.debug(f"{package_dir} no longer exists, skipping {package.name}")
            return False

        run_script(
            package_dir,
            Phase.UNINSTALL,
            context,
            package=package,
            install_dir=package_dir,
            timeout=self.config.script_timeout,
        )
        self.cache.remove(package_dir)
        context.info(f"Uninstalled {package.name} {package.version}")
        return True

    def update(
        self, target: Package | Path | str, context: OperationContext | None = None
    ) -> Package | None:
        """
        Update an installed package to the target's version.

        Args:
            target: Archive or descriptor path, or a package record
            context: Operation context

        Returns:
            The installed package, or None if no version was installed

        Raises:
            DowngradeRejected: If the target is older than the installed version
            ProviderError: For any install failure
        """
        self._check_open()
        context = context or OperationContext()
        candidate = self._resolve_target(target, context)

        current = self._installed(candidate.name, context)
        if not current:
            context.verbose(f"{candidate.name} is not installed, nothing to update")
            return None

        installed = max(current, key=lambda p: p.version)
        if candidate.version < installed.version:
            raise DowngradeRejected(
                candidate.name, str(installed.version), str(candidate.version)
            )

        return self.install(candidate, context)

    def _resolve_target(
        self, target: Package | Path | str, context: OperationContext
    ) -> Package:
        if isinstance(target, Package):
            return target

        package = self.find(target, context)
        if package is None:
            raise NotAPackage(f"{target} is not a package archive or descriptor")
        return package

    def _installed(self, name: str, context: OperationContext) -> list[Package]:
        """Installed packages whose name equals name exactly."""
        packages = []
        for descriptor in self.cache.list_descriptors():
            try:
                package = resolve(descriptor, self.config)
            except ProviderError as e:
                context.debug(f"Ignoring {descriptor.parent}: {e}")
                continue
            if package is not None and package.name == name:
                packages.append(package)
        return packages
