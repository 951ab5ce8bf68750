"""
Configuration Schema System.

This module provides field declarations and validation for the plugin and
settings tables of a plugvisor configuration file.

Key features:
- Type-safe field definitions with constraints
- Optional fields that accept None
- Defaults filled in for missing fields
"""

import copy
from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when value validation fails."""

    pass


def _type_name(type_: type) -> str:
    return type_.__name__


def _is_instance(value: Any, type_: type) -> bool:
    # bool is an int subclass; keep them apart
    if type_ in (int, float) and isinstance(value, bool):
        return False
    if type_ is float and isinstance(value, int):
        return True
    return isinstance(value, type_)


@dataclass
class ConfigField:
    """
    Represents a configuration field with type and constraints.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description
        min: Minimum value (for numbers) or minimum length (for strings/lists)
        max: Maximum value (for numbers) or maximum length (for strings/lists)
        choices: List of allowed values (optional)
        optional: Whether None is an accepted value
        item_type: Expected type of list items / dict values (optional)
    """

    type_: type
    default: Any
    description: str = ""
    min: Any = None
    max: Any = None
    choices: list[Any] | None = None
    optional: bool = False
    item_type: type | None = None

    def __post_init__(self):
        """Validate field definition."""
        if self.default is None:
            if not self.optional:
                raise SchemaError("Default value None requires optional=True")
        elif not _is_instance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {_type_name(self.type_)}"
            )

        if (self.min is not None or self.max is not None) and self.type_ not in (
            int,
            float,
            str,
            list,
        ):
            raise SchemaError(
                f"min/max constraints only supported for int, float, str, list. Got {_type_name(self.type_)}"
            )

        if self.item_type is not None and self.type_ not in (list, dict):
            raise SchemaError("item_type only supported for list and dict fields")

        if self.choices is not None:
            if not isinstance(self.choices, list):
                raise SchemaError("choices must be a list")
            for choice in self.choices:
                if not _is_instance(choice, self.type_):
                    raise SchemaError(
                        f"Choice {choice!r} does not match type {_type_name(self.type_)}"
                    )
            if self.default is not None and self.default not in self.choices:
                raise SchemaError(
                    f"Default value {self.default!r} not in choices {self.choices}"
                )

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Args:
            value: The value to validate

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            if self.optional:
                return
            raise ValidationError("Value may not be empty")

        if not _is_instance(value, self.type_):
            raise ValidationError(
                f"Expected type {_type_name(self.type_)}, got {type(value).__name__}"
            )

        if self.choices is not None and value not in self.choices:
            raise ValidationError(
                f"Value {value!r} not in allowed choices {self.choices}"
            )

        if self.type_ in (int, float):
            if self.min is not None and value < self.min:
                raise ValidationError(f"Value {value} is less than minimum {self.min}")
            if self.max is not None and value > self.max:
                raise ValidationError(
                    f"Value {value} is greater than maximum {self.max}"
                )

        if self.type_ in (str, list):
            kind = "String" if self.type_ is str else "List"
            if self.min is not None and len(value) < self.min:
                raise ValidationError(
                    f"{kind} length {len(value)} is less than minimum {self.min}"
                )
            if self.max is not None and len(value) > self.max:
                raise ValidationError(
                    f"{kind} length {len(value)} is greater than maximum {self.max}"
                )

        if self.item_type is not None:
            items = value.values() if self.type_ is dict else value
            for item in items:
                if not _is_instance(item, self.item_type):
                    raise ValidationError(
                        f"Expected items of type {_type_name(self.item_type)}, "
                        f"got {type(item).__name__}"
                    )


PLUGIN_SCHEMA: dict[str, ConfigField] = {
    "name": ConfigField(str, "", "Human-readable plugin name"),
    "type": ConfigField(str, "process", "Plugin type used to pick a factory"),
    "version": ConfigField(str, "", "Plugin version"),
    "executable": ConfigField(
        str, "", "Executable or command; supports {installFolder} and ${ENV} tokens"
    ),
    "arguments": ConfigField(list, [], "Arguments in argv order", item_type=str),
    "working_directory": ConfigField(
        str, None, "Working directory (omit for the process default)", optional=True
    ),
    "environment": ConfigField(
        dict, {}, "Environment variables for the service", item_type=str
    ),
    "restart_policy": ConfigField(
        str,
        "on_failure",
        "Restart behavior",
        choices=["always", "on_failure", "never"],
    ),
    "enabled": ConfigField(bool, True, "Whether the plugin is generated and started"),
    "health_check_interval_seconds": ConfigField(
        int, None, "Seconds between health checks", min=1, optional=True
    ),
    "health_check_timeout_seconds": ConfigField(
        int, None, "Health check timeout in seconds", min=1, optional=True
    ),
}

SETTINGS_SCHEMA: dict[str, ConfigField] = {
    "install_folder": ConfigField(str, "", "Root folder plugins are installed under"),
    "output_root": ConfigField(
        str, "generated-services", "Directory generated service files are written to"
    ),
    "health_check_timeout_seconds": ConfigField(
        int, 5, "Default health check timeout in seconds", min=1
    ),
    "monitor_interval_seconds": ConfigField(
        int, 10, "Seconds between health monitor passes", min=1
    ),
    "restart_backoff_seconds": ConfigField(
        int, 5, "Minimum seconds between restarts of one plugin", min=0
    ),
}


def validate_config(
    config: dict[str, Any], schema: dict[str, ConfigField]
) -> dict[str, Any]:
    """
    Validate a configuration dictionary against a schema.

    Args:
        config: The configuration dictionary to validate
        schema: The schema dictionary (field_name -> ConfigField)

    Returns:
        A new dictionary with defaults filled in for missing fields

    Raises:
        ValidationError: If validation fails
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    validated: dict[str, Any] = {}
    for field_name, field in schema.items():
        if field_name not in config:
            validated[field_name] = copy.deepcopy(field.default)
            continue

        try:
            field.validate(config[field_name])
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e
        validated[field_name] = config[field_name]

    return validated


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """
    Generate a default configuration from a schema.

    Args:
        schema: The schema dictionary (field_name -> ConfigField)

    Returns:
        A dictionary with default values for all fields
    """
    return {
        field_name: copy.deepcopy(field.default) for field_name, field in schema.items()
    }
