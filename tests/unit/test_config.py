"""
Tests for Configuration System.

This test suite covers:
1. Schema validation (type mismatch, choices, empty values)
2. Environment string coercion
3. TOML generation from schema (with comments)
4. TOML parsing and round-trip preservation
5. Settings loading with file and environment overrides
6. Error cases
"""

import logging
import tempfile
import tomllib
from pathlib import Path

import pytest

from plughost.config import (
    SCHEMA,
    ConfigError,
    HostSettings,
    load_settings,
    write_default_config,
)
from plughost.config.schema import (
    ConfigField,
    SchemaError,
    ValidationError,
    validate_config,
)
from plughost.config.toml_handler import (
    TOMLError,
    generate_toml_from_schema,
    read_toml,
    write_toml,
)
from plughost.core.logging_config import configure_logging


class TestSchemaValidation:
    """Test schema field validation."""

    def test_field_creation_basic_types(self):
        """ConfigField should accept basic types."""
        field_str = ConfigField(str, "hello", "A string")
        assert field_str.type_ is str
        assert field_str.default == "hello"

        field_bool = ConfigField(bool, True, "A boolean")
        assert field_bool.type_ is bool
        assert field_bool.default is True

    def test_field_default_type_mismatch(self):
        """ConfigField should reject default value that doesn't match type."""
        with pytest.raises(SchemaError, match="does not match type"):
            ConfigField(int, "not an int", "Bad default")

    def test_field_choices_default_must_be_in_choices(self):
        """Default value must be one of the choices."""
        with pytest.raises(SchemaError, match="not in choices"):
            ConfigField(str, "TRACE", "Level", choices=["INFO", "DEBUG"])

    def test_field_choices_constraint(self):
        """Values outside the choices should be rejected."""
        field = ConfigField(str, "INFO", "Level", choices=["INFO", "DEBUG"])
        field.validate("DEBUG")

        with pytest.raises(ValidationError, match="not in allowed choices"):
            field.validate("LOUD")

    def test_field_rejects_empty_string(self):
        """String fields should not accept blank values."""
        field = ConfigField(str, "effectgen", "Core package")

        with pytest.raises(ValidationError, match="must not be empty"):
            field.validate("   ")

    def test_field_rejects_wrong_type(self):
        """Values of the wrong type should be rejected."""
        field = ConfigField(str, "effectgen", "Core package")

        with pytest.raises(ValidationError, match="Expected type str"):
            field.validate(42)

    def test_validate_config_unknown_field(self):
        """Unknown fields should be rejected."""
        with pytest.raises(ValidationError, match="Unknown configuration field"):
            validate_config({"colour": "blue"}, SCHEMA)

    def test_validate_config_missing_fields_allowed(self):
        """A partial table should validate."""
        validate_config({"core_package": "fxcore"}, SCHEMA)


class TestCoercion:
    """Test conversion of environment strings."""

    def test_coerce_bool(self):
        """Boolean strings should map to True/False."""
        field = ConfigField(bool, False, "Flag")
        assert field.coerce("yes") is True
        assert field.coerce("OFF") is False

    def test_coerce_bool_invalid(self):
        """Unrecognized boolean strings should be rejected."""
        field = ConfigField(bool, False, "Flag")
        with pytest.raises(ValidationError):
            field.coerce("maybe")

    def test_coerce_int(self):
        """Numeric strings should convert to int."""
        field = ConfigField(int, 10, "Depth")
        assert field.coerce("12") == 12

        with pytest.raises(ValidationError, match="Cannot convert"):
            field.coerce("twelve")


class TestTOMLHandler:
    """Test TOML file operations."""

    def test_toml_read_write_roundtrip(self):
        """TOML should round-trip through write and read."""
        with tempfile.TemporaryDirectory() as tmpdir:
            toml_path = Path(tmpdir) / "nested" / "test.toml"

            data = {
                "plugins": [
                    {"name": "glow-fx", "path": "glow-fx", "enabled": True},
                    {"name": "blur", "path": "/opt/blur", "enabled": False},
                ]
            }

            write_toml(toml_path, data)
            loaded = read_toml(toml_path)

            assert loaded == data

    def test_toml_read_missing_file(self):
        """Reading a missing file should raise TOMLError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(TOMLError, match="not found"):
                read_toml(Path(tmpdir) / "missing.toml")

    def test_toml_read_invalid_file(self):
        """Reading invalid TOML should raise TOMLError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            toml_path = Path(tmpdir) / "bad.toml"
            toml_path.write_text("this is = = not toml")

            with pytest.raises(TOMLError, match="Failed to parse"):
                read_toml(toml_path)

    def test_toml_generate_from_schema(self):
        """Generated TOML should include comments and parse back."""
        values = {name: field.default for name, field in SCHEMA.items()}
        content = generate_toml_from_schema("host", SCHEMA, values)

        assert "[host]" in content
        assert "# Logging level" in content
        assert "# Choices: DEBUG, INFO, WARNING, ERROR, CRITICAL" in content

        parsed = tomllib.loads(content)
        assert parsed["host"]["core_package"] == "effectgen"
        assert parsed["host"]["dependency_dir"] == "site-packages"


class TestLoadSettings:
    """Test settings loading."""

    def test_defaults_when_file_missing(self):
        """A missing settings file should yield defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = load_settings(Path(tmpdir) / "none.toml", environ={})

            assert settings == HostSettings()
            assert settings.plugins_dir == Path("data") / "plugins"
            assert settings.plugins_config_file == Path("data") / "plugins.toml"

    def test_file_values_applied(self):
        """Values from the [host] table should override defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "plughost.toml"
            config_file.write_text(
                '[host]\ncore_package = "fxcore"\napp_data_dir = "/srv/fx"\n'
            )

            settings = load_settings(config_file, environ={})

            assert settings.core_package == "fxcore"
            assert settings.app_data_dir == Path("/srv/fx")
            assert settings.dependency_dir == "site-packages"

    def test_environment_overrides_file(self):
        """PLUGHOST_* variables should win over the file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "plughost.toml"
            config_file.write_text('[host]\nlog_level = "WARNING"\n')

            settings = load_settings(
                config_file, environ={"PLUGHOST_LOG_LEVEL": "DEBUG"}
            )

            assert settings.log_level == "DEBUG"

    def test_invalid_environment_value(self):
        """An environment value outside the choices should raise ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ConfigError):
                load_settings(
                    Path(tmpdir) / "none.toml", environ={"PLUGHOST_LOG_LEVEL": "LOUD"}
                )

    def test_unknown_field_in_file(self):
        """Unknown settings should raise ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "plughost.toml"
            config_file.write_text('[host]\ncolour = "blue"\n')

            with pytest.raises(ConfigError, match="Unknown configuration field"):
                load_settings(config_file, environ={})

    def test_unparsable_file(self):
        """A broken settings file should raise ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "plughost.toml"
            config_file.write_text("[host\n")

            with pytest.raises(ConfigError):
                load_settings(config_file, environ={})

    def test_write_default_config_roundtrip(self):
        """The generated default file should load back as the defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = write_default_config(Path(tmpdir) / "config" / "plughost.toml")

            assert config_file.exists()
            assert load_settings(config_file, environ={}) == HostSettings()


class TestLogging:
    """Test logging configuration."""

    def test_configure_logging_sets_level(self):
        """configure_logging() should set the root level and add one handler."""
        root_logger = logging.getLogger()
        previous_level = root_logger.level
        previous_handlers = list(root_logger.handlers)

        try:
            configure_logging("debug")
            configure_logging("DEBUG")

            assert root_logger.level == logging.DEBUG
            stream_handlers = [
                h for h in root_logger.handlers if isinstance(h, logging.StreamHandler)
            ]
            assert len(stream_handlers) >= 1
            assert len(root_logger.handlers) <= len(previous_handlers) + 1
        finally:
            root_logger.handlers[:] = previous_handlers
            root_logger.setLevel(previous_level)

    def test_unknown_level_falls_back_to_info(self):
        """An unknown level name should mean INFO."""
        root_logger = logging.getLogger()
        previous_level = root_logger.level
        previous_handlers = list(root_logger.handlers)

        try:
            configure_logging("chatty")
            assert root_logger.level == logging.INFO
        finally:
            root_logger.handlers[:] = previous_handlers
            root_logger.setLevel(previous_level)
