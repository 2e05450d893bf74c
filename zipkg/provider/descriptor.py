"""
Package Descriptor Resolution.

This module resolves a package's identity from the file it ships in.

Key features:
- Descriptor lookup inside zip archives (matched on entry name, not path)
- Standalone descriptor files (*.package.json)
- Case-insensitive descriptor field names
- Version ordering with numeric-then-lexicographic components
- Recursive metadata flattening into plain dicts
"""

import json
import re
import zipfile
from dataclasses import dataclass, field
from functools import total_ordering
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from zipkg.provider.errors import (
    DescriptorNotFound,
    DescriptorParseError,
    FilesystemError,
)

if TYPE_CHECKING:
    from zipkg.config import ProviderConfig


DESCRIPTOR_FILENAME = ".package.json"
DESCRIPTOR_SUFFIX = ".package.json"
ARCHIVE_SUFFIX = ".zip"

_PRERELEASE_SEPARATORS = re.compile(r"[.\-]")


def _component_key(part: str) -> tuple[int, int, str]:
    if part.isascii() and part.isdigit():
        return (0, int(part), "")
    return (1, 0, part)


@total_ordering
class Version:
    """
    Ordered version token.

    A version is a release core, an optional "-" prerelease and an optional
    "+" build suffix. Components compare numerically when digit-only and
    lexicographically otherwise, numbers first. Trailing zero components of
    the core are ignored, so "1.0" == "1.0.0". A prerelease sorts below its
    release ("1.0.0-rc1" < "1.0.0"); the build suffix only breaks ties.
    """

    def __init__(self, text: str):
        text = str(text).strip()
        if not text:
            raise DescriptorParseError("Version must not be empty")

        main, _, build = text.partition("+")
        core, has_prerelease, prerelease = main.partition("-")

        core_key = [_component_key(part) for part in core.split(".")]
        while core_key and core_key[-1] == (0, 0, ""):
            core_key.pop()

        if has_prerelease:
            parts = _PRERELEASE_SEPARATORS.split(prerelease)
            release_key = (0, tuple(_component_key(part) for part in parts))
        else:
            release_key = (1, ())

        build_key = tuple(_component_key(p) for p in build.split(".")) if build else ()

        self.text = text
        self._key = (tuple(core_key), release_key, build_key)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            other = Version(other)
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: object) -> bool:
        if isinstance(other, str):
            other = Version(other)
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Version({self.text!r})"


@dataclass
class PackageDescriptor:
    """
    Parsed descriptor content.

    Attributes:
        name: Package name (unique within a cache)
        version: Package version
        description: Package description
        metadata: Flattened metadata mapping
    """

    name: str
    version: Version
    description: str
    metadata: dict[str, Any]


@dataclass(frozen=True)
class PackageSource:
    """Where a package record came from."""

    name: str
    location: Path


@dataclass
class Package:
    """
    Package record returned to callers.

    Attributes:
        name: Package name
        version: Package version
        description: Package description
        metadata: Flattened metadata mapping
        source: Archive, descriptor or installed-cache location
        provider: Configuration of the provider that produced this record
    """

    name: str
    version: Version
    description: str
    metadata: dict[str, Any]
    source: PackageSource
    provider: "ProviderConfig | None" = field(default=None, compare=False, repr=False)

    @property
    def directory(self) -> Path:
        """Directory holding the package's descriptor."""
        return self.source.location.parent

    @property
    def is_archive(self) -> bool:
        return is_archive_path(self.source.location)


def is_archive_path(path: Path) -> bool:
    return path.suffix.lower() == ARCHIVE_SUFFIX


def is_descriptor_path(path: Path) -> bool:
    return path.name.endswith(DESCRIPTOR_SUFFIX)


def is_package_path(path: Path) -> bool:
    """
    Check whether a path has one of the registered package suffixes.

    Args:
        path: Candidate path

    Returns:
        True for zip archives and descriptor files
    """
    return is_archive_path(path) or is_descriptor_path(path)


def flatten_metadata(value: Any) -> Any:
    """
    Convert parsed metadata into plain Python containers.

    Nested objects become string-keyed dicts, recursively; lists are
    converted element-wise; scalars are returned unchanged.
    """
    if isinstance(value, dict):
        return {str(key): flatten_metadata(item) for key, item in value.items()}
    if isinstance(value, list):
        return [flatten_metadata(item) for item in value]
    return value


def parse_descriptor(data: bytes | str, origin: str) -> PackageDescriptor:
    """
    Parse descriptor content.

    Args:
        data: Raw JSON content
        origin: Human-readable location used in error messages

    Returns:
        PackageDescriptor object

    Raises:
        DescriptorParseError: If content is not valid JSON or fields are invalid
    """
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DescriptorParseError(f"Failed to parse descriptor {origin}: {e}") from e

    if not isinstance(parsed, dict):
        raise DescriptorParseError(f"Descriptor {origin} must contain a JSON object")

    fields = {str(key).lower(): value for key, value in parsed.items()}
    validate_descriptor_fields(fields, origin)

    return PackageDescriptor(
        name=fields["name"].strip(),
        version=Version(str(fields["version"])),
        description=fields.get("description") or "",
        metadata=flatten_metadata(fields.get("metadata") or {}),
    )


def validate_descriptor_fields(fields: dict[str, Any], origin: str) -> None:
    """
    Validate lower-cased descriptor fields.

    Args:
        fields: Descriptor data keyed by lower-case field name
        origin: Location used in error messages

    Raises:
        DescriptorParseError: If a field is missing or has the wrong type
    """
    name = fields.get("name")
    if not isinstance(name, str) or not name.strip():
        raise DescriptorParseError(f"Descriptor {origin} is missing 'Name'")

    # The name doubles as the cache directory name
    if name.strip() in (".", "..") or re.search(r"[\\/:]", name):
        raise DescriptorParseError(f"Invalid package name in {origin}: {name!r}")

    version = fields.get("version")
    if version is None:
        raise DescriptorParseError(f"Descriptor {origin} is missing 'Version'")
    if isinstance(version, (bool, dict, list)):
        raise DescriptorParseError(f"Invalid version in {origin}: {version!r}")

    description = fields.get("description")
    if description is not None and not isinstance(description, str):
        raise DescriptorParseError(f"'Description' in {origin} must be a string")

    metadata = fields.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise DescriptorParseError(f"'Metadata' in {origin} must be an object")


def find_descriptor_entry(archive: zipfile.ZipFile, origin: Path) -> zipfile.ZipInfo:
    """
    Locate the descriptor entry of an archive.

    Args:
        archive: Open archive
        origin: Archive path used in error messages

    Returns:
        The matching ZipInfo

    Raises:
        DescriptorNotFound: If no entry is named DESCRIPTOR_FILENAME
        DescriptorParseError: If more than one entry matches
    """
    matches = [
        info
        for info in archive.infolist()
        if not info.is_dir()
        and PurePosixPath(info.filename.replace("\\", "/")).name == DESCRIPTOR_FILENAME
    ]

    if not matches:
        raise DescriptorNotFound(f"No {DESCRIPTOR_FILENAME} found in {origin}")
    if len(matches) > 1:
        names = ", ".join(info.filename for info in matches)
        raise DescriptorParseError(f"Multiple descriptors found in {origin}: {names}")

    return matches[0]


def read_archive_descriptor(path: Path) -> PackageDescriptor:
    """
    Read the descriptor embedded in a zip archive.

    Args:
        path: Archive path

    Returns:
        PackageDescriptor object

    Raises:
        DescriptorNotFound: If the archive has no descriptor
        DescriptorParseError: If the archive or descriptor is malformed
        FilesystemError: If the archive cannot be opened
    """
    try:
        with zipfile.ZipFile(path) as archive:
            entry = find_descriptor_entry(archive, path)
            return parse_descriptor(archive.read(entry), f"{path}!{entry.filename}")
    except zipfile.BadZipFile as e:
        raise DescriptorParseError(f"Invalid zip archive {path}: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Failed to open archive {path}: {e}") from e


def read_descriptor_file(path: Path) -> PackageDescriptor:
    """
    Read a standalone descriptor file.

    Raises:
        DescriptorParseError: If the descriptor is malformed
        FilesystemError: If the file cannot be read
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FilesystemError(f"Failed to read descriptor {path}: {e}") from e

    return parse_descriptor(data, str(path))


def resolve(path: Path | str, provider: "ProviderConfig | None" = None) -> Package | None:
    """
    Resolve a package record from an archive or descriptor path.

    Args:
        path: Archive or descriptor path
        provider: Owning provider configuration

    Returns:
        Package record, or None if the path is not a package

    Raises:
        DescriptorNotFound: If an archive has no descriptor
        DescriptorParseError: If descriptor content is malformed
        FilesystemError: If the file cannot be read
    """
    path = Path(path)

    if is_archive_path(path):
        descriptor = read_archive_descriptor(path)
    elif is_descriptor_path(path):
        descriptor = read_descriptor_file(path)
    else:
        return None

    return Package(
        name=descriptor.name,
        version=descriptor.version,
        description=descriptor.description,
        metadata=descriptor.metadata,
        source=PackageSource(name=path.name, location=path.resolve()),
        provider=provider,
    )
