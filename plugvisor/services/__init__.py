"""
plugvisor Services - Service-manager file generation.

This module renders plugin definitions into systemd units, supervisor
program blocks and an install script.
"""

from plugvisor.services.generator import (
    GenerationError,
    GenerationResult,
    ServiceDefinitionGenerator,
    effective_id,
)

__all__ = [
    "GenerationError",
    "GenerationResult",
    "ServiceDefinitionGenerator",
    "effective_id",
]
