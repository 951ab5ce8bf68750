"""
plugvisor Plugin System - Plugin model, lifecycle and registry.

This module handles:
- PluginConfig / PluginContext data model
- Plugin lifecycle contract and state notifications
- Thread-safe definition and instance registry
- Orchestration of plugin instances
"""

from plugvisor.plugin.base import Plugin, PluginError, PluginState, raise_if_cancelled
from plugvisor.plugin.models import (
    PluginConfig,
    PluginContext,
    RestartPolicy,
    VariableMap,
)
from plugvisor.plugin.orchestrator import PluginOrchestrator
from plugvisor.plugin.registry import PluginRegistry

__all__ = [
    "Plugin",
    "PluginConfig",
    "PluginContext",
    "PluginError",
    "PluginOrchestrator",
    "PluginRegistry",
    "PluginState",
    "RestartPolicy",
    "VariableMap",
    "raise_if_cancelled",
]
