"""
Template Token Resolver.

This module expands placeholders inside plugin configuration strings.

Two token syntaxes are supported:
- {name}: context variables (case-insensitive), then the installFolder property
- ${NAME}: INSTALL_FOLDER, then context variables, then the environment

Unresolved tokens are left verbatim. Expansion is a single left-to-right pass,
so substituted values are never scanned again.
"""

import os
import re
from collections.abc import Callable, Mapping
from typing import Any

from plugvisor.plugin.models import PluginContext

EnvLookup = Callable[[str], str | None]

# Dollar form must be tried first so "${X}" is not read as "$" + "{X}"
_TOKEN = re.compile(r"\$\{([^}]+)\}|\{([^}]+)\}")

_INSTALL_FOLDER_PROPERTY = "installfolder"
_INSTALL_FOLDER_NAME = "install_folder"


def _to_text(value: Any) -> str:
    return "" if value is None else str(value)


def _lookup_variable(ctx: PluginContext | None, name: str) -> tuple[bool, str]:
    if ctx is None or ctx.variables is None:
        return False, ""
    if name in ctx.variables:
        return True, _to_text(ctx.variables[name])
    return False, ""


def _resolve_brace(name: str, ctx: PluginContext | None) -> str | None:
    found, value = _lookup_variable(ctx, name)
    if found:
        return value
    if ctx is not None and name.lower() == _INSTALL_FOLDER_PROPERTY:
        return ctx.install_folder or ""
    return None


def _resolve_dollar(
    name: str, ctx: PluginContext | None, env_lookup: EnvLookup
) -> str | None:
    if ctx is not None and name.lower() == _INSTALL_FOLDER_NAME:
        return ctx.install_folder or ""

    found, value = _lookup_variable(ctx, name)
    if found:
        return value

    env_value = env_lookup(name)
    if env_value:
        return env_value
    return None


def expand(
    value: str | None,
    ctx: PluginContext | None,
    env_lookup: EnvLookup = os.environ.get,
) -> str | None:
    """
    Expand template tokens in a string.

    Args:
        value: String to expand (None is returned unchanged)
        ctx: Substitution context
        env_lookup: Environment lookup used for ${NAME} fallback

    Returns:
        Expanded string, or None when value is None

    Example:
        >>> ctx = PluginContext(install_folder="/opt/app", variables={"port": 4723})
        >>> expand("{installFolder}/bin --port {PORT}", ctx)
        '/opt/app/bin --port 4723'
    """
    if not value:
        return value

    def replace(match: re.Match) -> str:
        dollar_name, brace_name = match.group(1), match.group(2)
        if dollar_name is not None:
            resolved = _resolve_dollar(dollar_name, ctx, env_lookup)
        else:
            resolved = _resolve_brace(brace_name, ctx)
        return match.group(0) if resolved is None else resolved

    return _TOKEN.sub(replace, value)


def expand_list(
    items: list[str] | None,
    ctx: PluginContext | None,
    env_lookup: EnvLookup = os.environ.get,
) -> list[str] | None:
    """Expand every element of a list, preserving order and length."""
    if items is None:
        return None
    return [expand(item, ctx, env_lookup) or "" for item in items]


def expand_dict(
    mapping: Mapping[str, str] | None,
    ctx: PluginContext | None,
    env_lookup: EnvLookup = os.environ.get,
) -> dict[str, str] | None:
    """Expand keys and values of a mapping, preserving insertion order."""
    if mapping is None:
        return None

    expanded: dict[str, str] = {}
    for key, val in mapping.items():
        new_key = expand(key, ctx, env_lookup) or key
        expanded[new_key] = expand(val, ctx, env_lookup) or ""
    return expanded
