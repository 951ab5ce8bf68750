"""
plugvisor Configuration - TOML-based plugin definitions and settings.

This module provides:
- Schema declaration and validation for plugin and settings tables
- TOML reading/writing and an annotated sample file
- Loading of definitions into a PluginRegistry

Example usage:
    from pathlib import Path

    from plugvisor.config import load_file, populate_registry
    from plugvisor.plugin import PluginRegistry

    loaded = load_file(Path("plugins.toml"))
    registry = PluginRegistry()
    populate_registry(registry, loaded.plugins)
"""

from plugvisor.config.loader import (
    ConfigError,
    LoadedConfig,
    Settings,
    load_data,
    load_file,
    load_plugin_configs,
    load_settings,
    populate_registry,
)
from plugvisor.config.schema import SchemaError, ValidationError
from plugvisor.config.toml_handler import (
    TOMLError,
    read_toml,
    render_sample_config,
    write_toml,
)

__all__ = [
    "ConfigError",
    "LoadedConfig",
    "SchemaError",
    "Settings",
    "TOMLError",
    "ValidationError",
    "load_data",
    "load_file",
    "load_plugin_configs",
    "load_settings",
    "populate_registry",
    "read_toml",
    "render_sample_config",
    "write_toml",
]
