"""
TOML File I/O Handler.

This module provides TOML parsing and writing for plugvisor configuration.

Key features:
- Parse TOML files using tomllib
- Write TOML files using tomlkit (preserves comments and formatting)
- Render an annotated sample configuration from the schemas
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit

from plugvisor.config.schema import PLUGIN_SCHEMA, SETTINGS_SCHEMA, ConfigField


class TOMLError(Exception):
    """Base exception for TOML-related errors."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Read and parse a TOML file.

    Args:
        file_path: Path to the TOML file

    Returns:
        Parsed TOML data as dictionary

    Raises:
        TOMLError: If file cannot be read or parsed
    """
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise TOMLError(f"TOML file not found: {file_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e
    except OSError as e:
        raise TOMLError(f"Failed to read TOML file {file_path}: {e}") from e


def write_toml(file_path: Path, data: dict[str, Any] | tomlkit.TOMLDocument) -> None:
    """
    Write data to a TOML file using tomlkit (preserves formatting).

    Args:
        file_path: Path to the TOML file
        data: Data or tomlkit document to write

    Raises:
        TOMLError: If file cannot be written
    """
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            tomlkit.dump(data, f)
    except (OSError, TypeError, ValueError) as e:
        raise TOMLError(f"Failed to write TOML file {file_path}: {e}") from e


def _add_fields(
    table: Any, schema: dict[str, ConfigField], values: dict[str, Any]
) -> None:
    for field_name, field in schema.items():
        if field.description:
            table.add(tomlkit.comment(field.description))

        constraints = []
        if field.min is not None:
            constraints.append(f"min: {field.min}")
        if field.max is not None:
            constraints.append(f"max: {field.max}")
        if field.choices is not None:
            constraints.append(f"choices: {', '.join(map(str, field.choices))}")
        if constraints:
            table.add(tomlkit.comment(f"Constraints: {', '.join(constraints)}"))

        value = values.get(field_name, field.default)
        if value is None:
            # TOML has no null; leave optional fields commented out
            table.add(tomlkit.comment(f"{field_name} = "))
        elif isinstance(value, dict):
            inline = tomlkit.inline_table()
            inline.update(value)
            table.add(field_name, inline)
        else:
            table.add(field_name, value)
        table.add(tomlkit.nl())


def render_sample_config() -> str:
    """
    Render an annotated sample configuration file.

    Returns:
        TOML string with one example plugin and descriptive comments
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("plugvisor configuration"))
    doc.add(tomlkit.comment("Strings support {name} and ${NAME} template tokens."))
    doc.add(tomlkit.nl())

    settings = tomlkit.table()
    _add_fields(settings, SETTINGS_SCHEMA, {"install_folder": "/opt/appium"})
    doc.add("settings", settings)

    variables = tomlkit.table()
    variables.add(tomlkit.comment("Template variables, matched case-insensitively"))
    variables.add("port", "4723")
    doc.add("variables", variables)

    example = tomlkit.table()
    _add_fields(
        example,
        PLUGIN_SCHEMA,
        {
            "name": "Example plugin",
            "executable": "{installFolder}/bin/node",
            "arguments": ["server.js", "--port", "{port}"],
            "environment": {"NODE_ENV": "production"},
        },
    )

    plugins = tomlkit.table(is_super_table=True)
    plugins.add("example-plugin", example)
    doc.add("plugins", plugins)

    return tomlkit.dumps(doc)
