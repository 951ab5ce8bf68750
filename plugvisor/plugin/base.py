"""
Plugin Lifecycle Contract.

This module defines the state machine and async operations every plugin
variant implements.

Key features:
- PluginState enumeration
- Synchronous state-change notification with subscribe/unsubscribe
- Cooperative cancellation helper for start/stop implementations
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from plugvisor.logging_config import get_logger
from plugvisor.plugin.models import PluginConfig, PluginContext

logger = get_logger("plugin")


class PluginError(Exception):
    """Base exception for plugin-related errors."""

    pass


class PluginState(Enum):
    """Plugin state enumeration."""

    DISABLED = "disabled"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


StateListener = Callable[["Plugin", PluginState], None]


def raise_if_cancelled(cancel: asyncio.Event | None) -> None:
    """
    Raise CancelledError when the caller's cancel signal is set.

    Plugin implementations call this at their suspension points.
    """
    if cancel is not None and cancel.is_set():
        raise asyncio.CancelledError()


class Plugin(ABC):
    """
    Base class for plugin variants.

    Subclasses set `plugin_type` and implement start(), stop() and
    check_health(). The id is fixed by whoever constructs the plugin; state is
    changed only through transition().

    Example:
        class EchoPlugin(Plugin):
            plugin_type = "echo"

            async def start(self, context, cancel=None):
                self.transition(PluginState.STARTING)
                await asyncio.sleep(0)
                raise_if_cancelled(cancel)
                self.transition(PluginState.RUNNING)
                return True
    """

    plugin_type: str = ""

    def __init__(self, plugin_id: str = "", config: PluginConfig | None = None):
        """
        Initialize Plugin.

        Args:
            plugin_id: Instance id (definition id or "definition:suffix")
            config: Plugin configuration (default: empty config)
        """
        self._id = plugin_id
        self._type = self.plugin_type
        self._state = PluginState.DISABLED
        self.config = config if config is not None else PluginConfig()
        self._listeners: list[StateListener] = []
        self._listeners_lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._id

    @property
    def type(self) -> str:
        return self._type

    @property
    def state(self) -> PluginState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Subscribe to state changes.

        Args:
            listener: Called as listener(plugin, new_state) on every assignment

        Returns:
            Callable that removes the subscription
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def transition(self, state: PluginState) -> None:
        """
        Assign a new state and notify subscribers synchronously.

        Repeated assignments of the same state notify again. A failing
        listener is logged and does not stop the others.
        """
        self._state = state

        with self._listeners_lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(self, state)
            except Exception as e:
                logger.warning(
                    "State listener for plugin '{}' failed on {}: {}",
                    self._id,
                    state.value,
                    e,
                )

    @abstractmethod
    async def start(
        self, context: PluginContext, cancel: asyncio.Event | None = None
    ) -> bool:
        """Bring the plugin to RUNNING. Returns True on success."""

    @abstractmethod
    async def stop(self, cancel: asyncio.Event | None = None) -> None:
        """Bring the plugin to STOPPED."""

    @abstractmethod
    async def check_health(self) -> bool:
        """Liveness probe. Must not change state."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, state={self._state.value})"
