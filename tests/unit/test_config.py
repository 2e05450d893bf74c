"""
Tests for the Configuration System.

This test suite covers:
1. Schema field validation
2. Loading the [provider] section (defaults, overrides, errors)
3. Generating the commented default config
"""

import tempfile
from pathlib import Path

import pytest

from zipkg.config import (
    PROVIDER_SCHEMA,
    ConfigError,
    ProviderConfig,
    default_cache_root,
    load_config,
    write_default_config,
)
from zipkg.config.schema import ConfigField, SchemaError, ValidationError, validate_config


class TestSchemaValidation:
    """Test schema field validation."""

    def test_field_default_type_mismatch(self):
        """ConfigField should reject a default that doesn't match its type."""
        with pytest.raises(SchemaError, match="does not match type"):
            ConfigField(int, "not an int", "Bad default")

    def test_field_min_constraint(self):
        """ConfigField should enforce minimum values."""
        field = ConfigField(int, 5, "Timeout", min=0)
        field.validate(0)

        with pytest.raises(ValidationError, match="less than minimum"):
            field.validate(-1)

    def test_field_rejects_bool_for_int(self):
        """ConfigField should not accept booleans as integers."""
        with pytest.raises(ValidationError, match="Expected type int"):
            ConfigField(int, 5).validate(True)

    def test_field_choices(self):
        """ConfigField should enforce choices."""
        field = ConfigField(str, "INFO", choices=["INFO", "DEBUG"])

        with pytest.raises(ValidationError, match="not in allowed choices"):
            field.validate("TRACE")

    def test_unknown_field(self):
        """validate_config should reject unknown fields."""
        with pytest.raises(ValidationError, match="Unknown configuration field"):
            validate_config({"colour": "blue"}, PROVIDER_SCHEMA)

    def test_partial_section_is_valid(self):
        """validate_config should allow fields to be omitted."""
        validate_config({"script_timeout": 30}, PROVIDER_SCHEMA)


class TestLoadConfig:
    """Test loading provider configuration."""

    def test_missing_file_uses_defaults(self):
        """Should fall back to defaults when the file does not exist."""
        config = load_config(Path("/nonexistent/zipkg.toml"))

        assert config.cache_root == default_cache_root()
        assert config.script_timeout == 600
        assert config.log_level == "WARNING"

    def test_load_overrides(self):
        """Should read values from the [provider] table."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "zipkg.toml"
            config_file.write_text(
                "[provider]\n"
                f"cache_root = '{Path(tmpdir) / 'cache'}'\n"
                "script_timeout = 0\n"
                "log_level = 'DEBUG'\n"
            )

            config = load_config(config_file)

            assert config.cache_root == Path(tmpdir) / "cache"
            assert config.script_timeout is None
            assert config.log_level == "DEBUG"

    def test_invalid_value(self):
        """Should raise ConfigError for values failing validation."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "zipkg.toml"
            config_file.write_text("[provider]\nscript_timeout = -5\n")

            with pytest.raises(ConfigError, match="script_timeout"):
                load_config(config_file)

    def test_malformed_toml(self):
        """Should raise ConfigError for unparsable files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "zipkg.toml"
            config_file.write_text("[provider\n")

            with pytest.raises(ConfigError, match="Failed to parse TOML"):
                load_config(config_file)

    def test_provider_must_be_table(self):
        """Should reject a non-table provider entry."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "zipkg.toml"
            config_file.write_text("provider = 3\n")

            with pytest.raises(ConfigError, match="must be a table"):
                load_config(config_file)


class TestWriteDefaultConfig:
    """Test config template generation."""

    def test_template_round_trip(self):
        """Should write a commented template that loads back to defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = write_default_config(Path(tmpdir) / "sub" / "zipkg.toml")

            content = config_file.read_text()
            assert "# Directory holding installed packages" in content
            assert "# Constraints: min: 0" in content

            config = load_config(config_file)
            assert config == ProviderConfig.from_dict({})
