"""
Tests for Descriptor Resolution.

This test suite covers:
1. Version ordering
2. Descriptor parsing (valid/invalid cases)
3. Archive resolution
4. Standalone descriptor files and unsupported paths
"""

import json
import tempfile
import zipfile
from pathlib import Path

import pytest

from zipkg.provider.descriptor import (
    DESCRIPTOR_FILENAME,
    Version,
    flatten_metadata,
    is_package_path,
    parse_descriptor,
    resolve,
)
from zipkg.provider.errors import (
    DescriptorNotFound,
    DescriptorParseError,
    FilesystemError,
)


def write_archive(path: Path, entries: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path


class TestVersion:
    """Test version ordering."""

    def test_numeric_components_compare_numerically(self):
        """Should order 1.10.0 after 1.9.0."""
        assert Version("1.10.0") > Version("1.9.0")
        assert Version("2.0") > Version("1.99.99")

    def test_trailing_zeros_are_ignored(self):
        """Should treat 1.0 and 1.0.0 as equal."""
        assert Version("1.0") == Version("1.0.0")
        assert hash(Version("1.0")) == hash(Version("1.0.0"))

    def test_textual_components_compare_lexicographically(self):
        """Should order textual components lexicographically, after numbers."""
        assert Version("1.0.0-alpha") < Version("1.0.0-beta")
        assert Version("1.2") < Version("1.a")

    def test_prerelease_sorts_below_release(self):
        """Should order a prerelease before its release."""
        assert Version("1.0.0-beta") < Version("1.0.0")
        assert Version("1.0.0-rc1") < Version("1.0")
        assert Version("1.0.0-rc.2") < Version("1.0.0-rc.10")
        assert Version("1.0.1-alpha") > Version("1.0.0")
        assert max(Version("1.0.0-rc1"), Version("1.0.0")) == "1.0.0"

    def test_build_suffix_breaks_ties(self):
        """Should rank build suffixes after the plain release."""
        assert Version("1.0.0") < Version("1.0.0+build.5")
        assert Version("1.0.0+build.5") < Version("1.0.1")

    def test_compare_with_string(self):
        """Should compare against plain version strings."""
        assert Version("1.2.3") == "1.2.3"
        assert Version("1.2.3") < "1.2.4"

    def test_max_selects_highest(self):
        """Should pick the highest version."""
        versions = [Version("1.2.0"), Version("1.10.0"), Version("1.9.9")]
        assert str(max(versions)) == "1.10.0"

    def test_empty_version_rejected(self):
        """Should reject empty version strings."""
        with pytest.raises(DescriptorParseError, match="must not be empty"):
            Version("  ")


class TestDescriptorParsing:
    """Test descriptor content parsing."""

    def test_parse_full_descriptor(self):
        """Should parse every descriptor field."""
        descriptor = parse_descriptor(
            json.dumps(
                {
                    "Name": "widget",
                    "Version": "1.0.0",
                    "Description": "A widget",
                    "Metadata": {"author": "someone", "tags": {"kind": "tool"}},
                }
            ),
            "test",
        )

        assert descriptor.name == "widget"
        assert descriptor.version == Version("1.0.0")
        assert descriptor.description == "A widget"
        assert descriptor.metadata == {"author": "someone", "tags": {"kind": "tool"}}

    def test_field_names_are_case_insensitive(self):
        """Should accept lower-case field names."""
        descriptor = parse_descriptor('{"name": "widget", "version": "2.1"}', "test")

        assert descriptor.name == "widget"
        assert descriptor.description == ""
        assert descriptor.metadata == {}

    def test_numeric_version_accepted(self):
        """Should accept a bare numeric version."""
        descriptor = parse_descriptor('{"Name": "widget", "Version": 3}', "test")
        assert descriptor.version == "3"

    def test_missing_name(self):
        """Should reject descriptors without a name."""
        with pytest.raises(DescriptorParseError, match="missing 'Name'"):
            parse_descriptor('{"Version": "1.0.0"}', "test")

    def test_missing_version(self):
        """Should reject descriptors without a version."""
        with pytest.raises(DescriptorParseError, match="missing 'Version'"):
            parse_descriptor('{"Name": "widget"}', "test")

    def test_name_with_path_separator(self):
        """Should reject names that are not valid directory names."""
        with pytest.raises(DescriptorParseError, match="Invalid package name"):
            parse_descriptor('{"Name": "../widget", "Version": "1.0"}', "test")

    def test_metadata_must_be_object(self):
        """Should reject non-object metadata."""
        with pytest.raises(DescriptorParseError, match="must be an object"):
            parse_descriptor('{"Name": "w", "Version": "1", "Metadata": [1]}', "test")

    def test_invalid_json(self):
        """Should raise DescriptorParseError for malformed JSON."""
        with pytest.raises(DescriptorParseError, match="Failed to parse descriptor"):
            parse_descriptor("{ invalid json }", "test")

    def test_non_object_json(self):
        """Should reject JSON that is not an object."""
        with pytest.raises(DescriptorParseError, match="JSON object"):
            parse_descriptor("[]", "test")

    def test_flatten_metadata_nested(self):
        """Should convert nested structures recursively."""
        flattened = flatten_metadata({"a": {"b": {"c": 1}}, "d": [{"e": True}], 5: "x"})
        assert flattened == {"a": {"b": {"c": 1}}, "d": [{"e": True}], "5": "x"}


class TestResolve:
    """Test resolving packages from paths."""

    def test_resolve_archive(self):
        """Should return the descriptor fields of an archive exactly."""
        with tempfile.TemporaryDirectory() as tmpdir:
            data = {
                "Name": "widget",
                "Version": "1.0.0",
                "Description": "A widget",
                "Metadata": {"homepage": "https://example.invalid", "nested": {"n": 1}},
            }
            archive = write_archive(
                Path(tmpdir) / "widget-1.0.zip", {DESCRIPTOR_FILENAME: json.dumps(data)}
            )

            package = resolve(archive)

            assert package.name == data["Name"]
            assert package.version == data["Version"]
            assert package.description == data["Description"]
            assert package.metadata == data["Metadata"]
            assert package.source.name == "widget-1.0.zip"
            assert package.source.location == archive.resolve()
            assert package.is_archive

    def test_resolve_archive_nested_descriptor(self):
        """Should match the descriptor on entry name, not path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = write_archive(
                Path(tmpdir) / "widget.zip",
                {f"widget/{DESCRIPTOR_FILENAME}": '{"Name": "widget", "Version": "1"}'},
            )

            assert resolve(archive).name == "widget"

    def test_descriptor_name_is_case_sensitive(self):
        """Should not accept a differently-cased descriptor entry."""
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = write_archive(
                Path(tmpdir) / "widget.zip",
                {DESCRIPTOR_FILENAME.upper(): '{"Name": "widget", "Version": "1"}'},
            )

            with pytest.raises(DescriptorNotFound):
                resolve(archive)

    def test_archive_without_descriptor(self):
        """Should raise DescriptorNotFound."""
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = write_archive(Path(tmpdir) / "empty.zip", {"readme.txt": "hi"})

            with pytest.raises(DescriptorNotFound, match="empty.zip"):
                resolve(archive)

    def test_archive_with_two_descriptors(self):
        """Should reject archives with ambiguous descriptors."""
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = write_archive(
                Path(tmpdir) / "two.zip",
                {
                    DESCRIPTOR_FILENAME: '{"Name": "a", "Version": "1"}',
                    f"b/{DESCRIPTOR_FILENAME}": '{"Name": "b", "Version": "1"}',
                },
            )

            with pytest.raises(DescriptorParseError, match="Multiple descriptors"):
                resolve(archive)

    def test_archive_with_bad_descriptor_releases_handle(self):
        """Should raise DescriptorParseError and leave the archive removable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = write_archive(Path(tmpdir) / "bad.zip", {DESCRIPTOR_FILENAME: "{"})

            with pytest.raises(DescriptorParseError):
                resolve(archive)

            archive.unlink()
            assert not archive.exists()

    def test_corrupt_archive(self):
        """Should raise DescriptorParseError for files that are not zips."""
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = Path(tmpdir) / "corrupt.zip"
            archive.write_text("not a zip")

            with pytest.raises(DescriptorParseError, match="Invalid zip archive"):
                resolve(archive)

    def test_resolve_descriptor_file(self):
        """Should parse standalone descriptor files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "widget.package.json"
            path.write_text('{"Name": "widget", "Version": "1.2"}')

            package = resolve(path)

            assert package.name == "widget"
            assert package.directory == Path(tmpdir).resolve()
            assert not package.is_archive

    def test_missing_descriptor_file(self):
        """Should raise FilesystemError for unreadable descriptors."""
        with pytest.raises(FilesystemError):
            resolve(Path("/nonexistent/widget.package.json"))

    def test_other_suffix_is_not_a_package(self):
        """Should return None for unsupported suffixes."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "widget.tar.gz"
            path.write_text("whatever")

            assert resolve(path) is None
            assert not is_package_path(path)
            assert is_package_path(Path("x.ZIP"))
            assert is_package_path(Path(DESCRIPTOR_FILENAME))
