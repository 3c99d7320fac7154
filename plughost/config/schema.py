"""
Settings Schema.

This module provides field declaration and validation for host settings.

Key features:
- Type-checked field definitions with an optional choices constraint
- Coercion of environment-variable strings into the declared type
- Validation of a whole settings table against the schema
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when value validation fails."""

    pass


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass
class ConfigField:
    """
    Represents a settings field with type and constraints.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description
        choices: List of allowed values (optional)
    """

    type_: type
    default: Any
    description: str = ""
    choices: list[Any] | None = None

    def __post_init__(self):
        """Validate field definition."""
        if not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )

        if self.choices is not None:
            for choice in self.choices:
                if not isinstance(choice, self.type_):
                    raise SchemaError(
                        f"Choice {choice!r} does not match type {self.type_.__name__}"
                    )
            if self.default not in self.choices:
                raise SchemaError(
                    f"Default value {self.default!r} not in choices {self.choices}"
                )

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.type_ is str and not value.strip():
            raise ValidationError("Value must not be empty")

        if self.choices is not None and value not in self.choices:
            raise ValidationError(
                f"Value {value!r} not in allowed choices {self.choices}"
            )

    def coerce(self, raw: str) -> Any:
        """
        Convert a raw string (e.g. from the environment) into the field type.

        Raises:
            ValidationError: If the string cannot be converted
        """
        if self.type_ is bool:
            lowered = raw.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValidationError(f"Cannot interpret {raw!r} as a boolean")

        try:
            return self.type_(raw)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Cannot convert {raw!r} to {self.type_.__name__}"
            ) from e


def validate_config(config: dict[str, Any], schema: dict[str, ConfigField]) -> None:
    """
    Validate a settings table against a schema.

    Missing fields are allowed (they take their defaults); unknown fields and
    invalid values are not.

    Raises:
        ValidationError: If validation fails
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    for field_name, value in config.items():
        try:
            schema[field_name].validate(value)
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """Generate a default settings table from a schema."""
    return {field_name: field.default for field_name, field in schema.items()}
