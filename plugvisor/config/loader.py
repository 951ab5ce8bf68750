"""
Configuration Loader.

This module turns a parsed plugvisor TOML document into settings, template
variables and PluginConfig objects.

File layout:
    [settings]               -> Settings
    [variables]              -> template variables
    [plugins.<id>]           -> PluginConfig (one table per plugin)
    [plugins.<id>.environment]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plugvisor.config.schema import (
    PLUGIN_SCHEMA,
    SETTINGS_SCHEMA,
    ValidationError,
    validate_config,
)
from plugvisor.config.toml_handler import read_toml
from plugvisor.logging_config import get_logger
from plugvisor.plugin.models import PluginConfig, RestartPolicy
from plugvisor.plugin.registry import PluginRegistry

logger = get_logger("config")

_TOP_LEVEL_TABLES = ("settings", "variables", "plugins")

DEFAULT_OUTPUT_ROOT = "generated-services"


class ConfigError(Exception):
    """Raised when a configuration document has the wrong structure."""

    pass


@dataclass
class Settings:
    """
    Process-wide settings.

    Attributes:
        install_folder: Root folder plugins are installed under
        output_root: Directory generated service files are written to
        health_check_timeout_seconds: Default health check timeout
        monitor_interval_seconds: Seconds between health monitor passes
        restart_backoff_seconds: Minimum seconds between restarts of one plugin
    """

    install_folder: str = ""
    output_root: str = DEFAULT_OUTPUT_ROOT
    health_check_timeout_seconds: int = 5
    monitor_interval_seconds: int = 10
    restart_backoff_seconds: int = 5


@dataclass
class LoadedConfig:
    """Everything read from one configuration file."""

    settings: Settings = field(default_factory=Settings)
    variables: dict[str, Any] = field(default_factory=dict)
    plugins: list[PluginConfig] = field(default_factory=list)
    source: Path | None = None


def _table(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a table")
    return value


def load_settings(data: dict[str, Any]) -> Settings:
    """
    Build Settings from the [settings] table.

    Raises:
        ConfigError: If the table is malformed
        ValidationError: If a value fails validation
    """
    values = validate_config(_table(data, "settings"), SETTINGS_SCHEMA)
    return Settings(**values)


def load_variables(data: dict[str, Any]) -> dict[str, Any]:
    """Return the [variables] table."""
    return dict(_table(data, "variables"))


def _plugin_from_table(plugin_id: str, table: dict[str, Any]) -> PluginConfig:
    raw = dict(table)
    if isinstance(raw.get("restart_policy"), str):
        try:
            raw["restart_policy"] = RestartPolicy.parse(raw["restart_policy"]).value
        except ValueError:
            # Leave as-is; schema validation reports the allowed choices
            pass

    try:
        values = validate_config(raw, PLUGIN_SCHEMA)
    except ValidationError as e:
        raise ValidationError(f"Plugin '{plugin_id}': {e}") from e

    return PluginConfig(
        id=plugin_id,
        name=values["name"],
        type=values["type"],
        version=values["version"],
        executable=values["executable"],
        arguments=list(values["arguments"]),
        working_directory=values["working_directory"],
        environment_variables=dict(values["environment"]),
        restart_policy=RestartPolicy(values["restart_policy"]),
        enabled=values["enabled"],
        health_check_interval_seconds=values["health_check_interval_seconds"],
        health_check_timeout_seconds=values["health_check_timeout_seconds"],
    )


def load_plugin_configs(data: dict[str, Any]) -> list[PluginConfig]:
    """
    Build PluginConfig objects from the [plugins] table.

    Plugins keep the order they appear in the file; the table key is the id.

    Raises:
        ConfigError: If a plugin entry is not a table
        ValidationError: If a plugin field fails validation
    """
    configs = []
    for plugin_id, table in _table(data, "plugins").items():
        if not isinstance(table, dict):
            raise ConfigError(f"Plugin '{plugin_id}' must be a table")
        configs.append(_plugin_from_table(plugin_id, table))
    return configs


def load_data(data: dict[str, Any], source: Path | None = None) -> LoadedConfig:
    """Build a LoadedConfig from an already parsed document."""
    for key in data:
        if key not in _TOP_LEVEL_TABLES:
            raise ConfigError(f"Unknown top-level table: {key}")

    loaded = LoadedConfig(
        settings=load_settings(data),
        variables=load_variables(data),
        plugins=load_plugin_configs(data),
        source=source,
    )
    logger.debug("Loaded {} plugin definition(s) from {}", len(loaded.plugins), source)
    return loaded


def load_file(file_path: Path) -> LoadedConfig:
    """
    Read and load a configuration file.

    Raises:
        TOMLError: If the file cannot be read or parsed
        ConfigError: If the document has the wrong structure
        ValidationError: If a value fails validation
    """
    return load_data(read_toml(file_path), source=file_path)


def populate_registry(registry: PluginRegistry, plugins: list[PluginConfig]) -> int:
    """
    Register plugin definitions by id.

    Returns:
        Number of definitions registered (blank ids are skipped)
    """
    count = 0
    for config in plugins:
        if not config.id or not config.id.strip():
            logger.warning("Skipping plugin definition without id ({!r})", config.name)
            continue
        registry.register_definition(config.id, config)
        count += 1
    return count
