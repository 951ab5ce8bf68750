"""
Plugin Data Model.

This module provides the value types shared by the registry, the lifecycle
contract and the service generator.

Key features:
- PluginConfig launch descriptor
- Restart policy enumeration
- PluginContext substitution environment
- Case-insensitive variable mapping
"""

from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_PLUGIN_TYPE = "process"


class RestartPolicy(Enum):
    """Restart policy enumeration."""

    ALWAYS = "always"
    ON_FAILURE = "on_failure"
    NEVER = "never"

    @classmethod
    def parse(cls, value: "str | RestartPolicy") -> "RestartPolicy":
        """
        Parse a restart policy from its config spelling.

        Accepts "always", "on_failure", "on-failure", "onfailure" and "never"
        in any case.

        Raises:
            ValueError: If the value names no policy
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().lower().replace("-", "_")
        if normalized == "onfailure":
            normalized = "on_failure"
        return cls(normalized)


@dataclass
class PluginConfig:
    """
    Launch descriptor for one plugin.

    Attributes:
        id: Unique key within a definition set (may be empty)
        name: Human-readable name
        type: Plugin type used to pick a factory
        version: Optional version string
        executable: Path or command, may contain template tokens
        arguments: Arguments in argv order, may contain template tokens
        working_directory: Working directory (None = process default)
        environment_variables: Environment passed to the service
        restart_policy: Restart behavior for supervisors
        enabled: Whether the plugin takes part in generation and startup
        health_check_interval_seconds: Health check throttle (None = default)
        health_check_timeout_seconds: Health check timeout (None = default)
    """

    id: str = ""
    name: str = ""
    type: str = ""
    version: str = ""
    executable: str = ""
    arguments: list[str] = field(default_factory=list)
    working_directory: str | None = None
    environment_variables: dict[str, str] = field(default_factory=dict)
    restart_policy: RestartPolicy = RestartPolicy.ON_FAILURE
    enabled: bool = True
    health_check_interval_seconds: int | None = None
    health_check_timeout_seconds: int | None = None


class VariableMap(MutableMapping[str, Any]):
    """
    Mapping with case-insensitive string keys.

    Keys are normalized to lower case on every access; the spelling used on
    the last write is kept for iteration.
    """

    def __init__(self, data: Mapping[str, Any] | None = None, **kwargs: Any):
        self._data: dict[str, tuple[str, Any]] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower()

    def __getitem__(self, key: str) -> Any:
        return self._data[self._normalize(key)][1]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[self._normalize(key)] = (key, value)

    def __delitem__(self, key: str) -> None:
        del self._data[self._normalize(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._normalize(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"VariableMap({dict(self.items())!r})"


@dataclass
class PluginContext:
    """
    Runtime substitution environment handed to plugins and the resolver.

    Attributes:
        install_folder: Root path plugins are installed under
        variables: Case-insensitive template variables
        config: Configuration the context was built for (optional)
        health_check_timeout_seconds: Effective health check timeout
    """

    install_folder: str = ""
    variables: VariableMap = field(default_factory=VariableMap)
    config: PluginConfig | None = None
    health_check_timeout_seconds: int | None = None

    def __post_init__(self):
        # Accept plain dicts from callers
        if not isinstance(self.variables, VariableMap):
            self.variables = VariableMap(self.variables)
