"""
plugvisor - Plugin registry and service definition generator.

This is the main package that exports the public API:
- Plugin lifecycle contract and registry
- Template token expansion
- systemd / supervisor service file generation
"""

__version__ = "0.1.0"

from plugvisor import template
from plugvisor.plugin import (
    Plugin,
    PluginConfig,
    PluginContext,
    PluginOrchestrator,
    PluginRegistry,
    PluginState,
    RestartPolicy,
)
from plugvisor.services import GenerationResult, ServiceDefinitionGenerator

__all__ = [
    "__version__",
    "GenerationResult",
    "Plugin",
    "PluginConfig",
    "PluginContext",
    "PluginOrchestrator",
    "PluginRegistry",
    "PluginState",
    "RestartPolicy",
    "ServiceDefinitionGenerator",
    "template",
]
