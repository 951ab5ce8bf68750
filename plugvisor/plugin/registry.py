"""
Plugin Registry.

This module tracks declared plugin definitions and live plugin instances.

Key features:
- Definitions keyed by id, enumerated in first-registration order
- Instances keyed by instance id, last writer wins
- Prefix lookup of instances spawned from one definition ("def:suffix")
- One lock per collection, snapshot reads
"""

import threading

from plugvisor.logging_config import get_logger
from plugvisor.plugin.base import Plugin
from plugvisor.plugin.models import PluginConfig

logger = get_logger("registry")


class PluginRegistry:
    """
    Thread-safe store of plugin definitions and runtime instances.

    Definitions are registered at startup from configuration; instances are
    added and removed as plugins are started and stopped.
    """

    def __init__(self):
        """Initialize an empty PluginRegistry."""
        self._definitions: dict[str, PluginConfig] = {}
        self._definitions_lock = threading.Lock()
        self._instances: dict[str, Plugin] = {}
        self._instances_lock = threading.Lock()

    # Definitions

    def register_definition(self, definition_id: str | None, config: PluginConfig) -> None:
        """
        Register or replace a plugin definition.

        Blank ids are ignored. Replacing an id keeps its original position in
        enumeration order.

        Args:
            definition_id: Definition id
            config: Plugin configuration
        """
        if definition_id is None or not definition_id.strip():
            logger.debug("Ignoring definition with blank id")
            return

        with self._definitions_lock:
            replaced = definition_id in self._definitions
            self._definitions[definition_id] = config

        logger.debug(
            "{} definition '{}'", "Replaced" if replaced else "Registered", definition_id
        )

    def get_definition(self, definition_id: str | None) -> PluginConfig | None:
        """
        Get a definition by exact id.

        Returns:
            PluginConfig, or None if not found
        """
        if definition_id is None:
            return None
        with self._definitions_lock:
            return self._definitions.get(definition_id)

    def get_definitions(self) -> list[tuple[str, PluginConfig]]:
        """
        List definitions in first-registration order.

        Returns:
            Snapshot list of (id, config) pairs
        """
        with self._definitions_lock:
            return list(self._definitions.items())

    # Instances

    def register_instance(self, plugin: Plugin) -> None:
        """Register a runtime instance under plugin.id, replacing any previous one."""
        with self._instances_lock:
            self._instances[plugin.id] = plugin

    def get_instance(self, instance_id: str | None) -> Plugin | None:
        """
        Get an instance by exact id.

        Returns:
            Plugin, or None if not found
        """
        if instance_id is None:
            return None
        with self._instances_lock:
            return self._instances.get(instance_id)

    def get_instances(self) -> list[Plugin]:
        """Snapshot of all registered instances."""
        with self._instances_lock:
            return list(self._instances.values())

    def get_instances_by_definition_id(self, definition_id: str) -> list[Plugin]:
        """
        Get instances spawned from a definition.

        Matches instance ids equal to definition_id or starting with
        "definition_id:".
        """
        prefix = definition_id + ":"
        with self._instances_lock:
            return [
                plugin
                for instance_id, plugin in self._instances.items()
                if instance_id == definition_id or instance_id.startswith(prefix)
            ]

    def remove_instance(self, instance_id: str | None) -> bool:
        """
        Remove an instance.

        Returns:
            True if an entry existed and was removed
        """
        if instance_id is None:
            return False
        with self._instances_lock:
            return self._instances.pop(instance_id, None) is not None
