"""
Plugin Orchestrator.

This module creates plugin instances from registered definitions and drives
their lifecycle.

Key features:
- Factory lookup by plugin type
- Per-device instance ids ("definition:deviceId")
- Start/stop of single instances and of everything registered
- Background health monitor applying each plugin's restart policy
"""

import asyncio
import contextlib
import time
from collections.abc import Callable
from dataclasses import replace

from plugvisor.logging_config import get_logger
from plugvisor.plugin.base import Plugin, PluginState
from plugvisor.plugin.models import (
    DEFAULT_PLUGIN_TYPE,
    PluginConfig,
    PluginContext,
    RestartPolicy,
    VariableMap,
)
from plugvisor.plugin.registry import PluginRegistry

logger = get_logger("orchestrator")

PluginFactory = Callable[[str, PluginConfig], Plugin]

DEVICE_ID_VARIABLE = "deviceId"


class PluginOrchestrator:
    """
    Plugin lifecycle host.

    Instances are built by factories registered per plugin type and kept in
    the shared PluginRegistry while they run.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        factories: dict[str, PluginFactory] | None = None,
        default_timeout_seconds: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize PluginOrchestrator.

        Args:
            registry: Registry holding definitions and instances
            factories: Plugin type -> factory
            default_timeout_seconds: Health check timeout when a definition has none
            clock: Monotonic time source for health check and restart throttling
        """
        self.registry = registry
        self.default_timeout_seconds = default_timeout_seconds
        self._factories: dict[str, PluginFactory] = {}
        self._clock = clock
        self._last_health_check: dict[str, float] = {}
        self._last_restart: dict[str, float] = {}
        self._monitor_task: asyncio.Task | None = None

        for plugin_type, factory in (factories or {}).items():
            self.register_factory(plugin_type, factory)

    def register_factory(self, plugin_type: str, factory: PluginFactory) -> None:
        """Register the factory used for definitions of the given type."""
        self._factories[plugin_type.strip().lower()] = factory

    def _instance_id(self, definition_id: str, context: PluginContext) -> str:
        device_id = context.variables.get(DEVICE_ID_VARIABLE) if context else None
        if device_id is None or str(device_id) == "":
            return definition_id
        return f"{definition_id}:{device_id}"

    def _instance_context(
        self, definition: PluginConfig, context: PluginContext
    ) -> PluginContext:
        """Copy of the caller's context bound to one definition; the original is not modified."""
        timeout = definition.health_check_timeout_seconds
        return replace(
            context,
            variables=VariableMap(context.variables),
            config=definition,
            health_check_timeout_seconds=(
                timeout if timeout is not None else self.default_timeout_seconds
            ),
        )

    async def start_plugin(
        self,
        definition_id: str,
        context: PluginContext,
        cancel: asyncio.Event | None = None,
    ) -> bool:
        """
        Create and start an instance of a definition.

        Args:
            definition_id: Registered definition id
            context: Context handed to the plugin
            cancel: Optional cancel signal

        Returns:
            True if the instance is running (or already was)

        Raises:
            asyncio.CancelledError: If the start was cancelled
        """
        definition = self.registry.get_definition(definition_id)
        if definition is None:
            logger.warning("Plugin definition '{}' not found", definition_id)
            return False

        context = context if context is not None else PluginContext()
        instance_id = self._instance_id(definition_id, context)

        if self.registry.get_instance(instance_id) is not None:
            logger.info("Plugin instance '{}' already running", instance_id)
            return True

        plugin_type = (definition.type or DEFAULT_PLUGIN_TYPE).strip().lower()
        factory = self._factories.get(plugin_type)
        if factory is None:
            logger.error(
                "No factory for plugin type '{}' (definition '{}')",
                plugin_type,
                definition_id,
            )
            return False

        instance_context = self._instance_context(definition, context)

        try:
            logger.info(
                "Creating plugin instance '{}' (definition='{}')", instance_id, definition_id
            )
            plugin = factory(instance_id, definition)
        except Exception as e:
            logger.error("Failed to create plugin instance '{}': {}", instance_id, e)
            return False

        self.registry.register_instance(plugin)

        try:
            started = await plugin.start(instance_context, cancel)
        except asyncio.CancelledError:
            if plugin.state in (PluginState.RUNNING, PluginState.STARTING):
                plugin.transition(PluginState.STOPPED)
            self.registry.remove_instance(instance_id)
            logger.info("Start of plugin instance '{}' was cancelled", instance_id)
            raise
        except Exception as e:
            logger.exception("Failed to start plugin instance '{}': {}", instance_id, e)
            plugin.transition(PluginState.ERROR)
            self.registry.remove_instance(instance_id)
            return False

        if not started:
            # Failed instances are never left registered
            logger.warning("Plugin instance '{}' failed to start", instance_id)
            self.registry.remove_instance(instance_id)
        return started

    async def start_enabled_plugins(
        self, context: PluginContext, cancel: asyncio.Event | None = None
    ) -> dict[str, bool]:
        """
        Start every enabled definition in registration order.

        Returns:
            Definition id -> start result
        """
        results: dict[str, bool] = {}
        for definition_id, definition in self.registry.get_definitions():
            if not definition.enabled:
                continue
            logger.info("Starting plugin definition '{}'", definition_id)
            results[definition_id] = await self.start_plugin(definition_id, context, cancel)
        return results

    async def stop_plugin(
        self, instance_id: str, cancel: asyncio.Event | None = None
    ) -> bool:
        """
        Stop an instance and remove it from the registry.

        Returns:
            True if the instance was stopped and removed
        """
        plugin = self.registry.get_instance(instance_id)
        if plugin is None:
            logger.warning("Plugin instance '{}' not found", instance_id)
            return False

        try:
            logger.info("Stopping plugin instance '{}'", instance_id)
            await plugin.stop(cancel)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Failed to stop plugin instance '{}': {}", instance_id, e)
            return False

        self.registry.remove_instance(instance_id)
        self._last_health_check.pop(instance_id, None)
        self._last_restart.pop(instance_id, None)
        return True

    async def stop_all(self, cancel: asyncio.Event | None = None) -> None:
        """Stop every registered instance, logging failures."""
        for plugin in self.registry.get_instances():
            try:
                logger.info("Stopping plugin '{}'", plugin.id)
                await plugin.stop(cancel)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Exception while stopping plugin '{}': {}", plugin.id, e)

    async def check_instances(
        self,
        context: PluginContext,
        interval_seconds: float = 10,
        restart_backoff_seconds: float = 5,
    ) -> list[str]:
        """
        Run one health monitor pass.

        Args:
            context: Context used when restarting plugins
            interval_seconds: Default per-instance check interval
            restart_backoff_seconds: Minimum time between restarts of one instance

        Returns:
            Ids of instances that were restarted
        """
        restarted: list[str] = []

        for plugin in self.registry.get_instances():
            if plugin.state != PluginState.RUNNING:
                continue

            instance_id = plugin.id
            interval = interval_seconds
            configured = plugin.config.health_check_interval_seconds if plugin.config else None
            if configured is not None and configured > 0:
                interval = configured

            now = self._clock()
            last_check = self._last_health_check.get(instance_id)
            if last_check is not None and now - last_check < interval:
                continue
            self._last_health_check[instance_id] = now

            try:
                healthy = await plugin.check_health()
            except Exception as e:
                logger.warning("Health check for plugin '{}' raised: {}", instance_id, e)
                healthy = False

            if healthy:
                continue

            policy = plugin.config.restart_policy if plugin.config else RestartPolicy.ON_FAILURE
            logger.warning(
                "Plugin '{}' reported unhealthy; applying restart policy {}",
                instance_id,
                policy.value,
            )

            if policy == RestartPolicy.NEVER:
                logger.info("Restart disabled for plugin '{}'", instance_id)
                continue

            last_restart = self._last_restart.get(instance_id)
            if last_restart is not None and now - last_restart < restart_backoff_seconds:
                logger.info("Skipping restart for '{}' due to recent restart", instance_id)
                continue
            self._last_restart[instance_id] = now

            try:
                await plugin.stop()
            except Exception as e:
                logger.warning("Error stopping plugin '{}' before restart: {}", instance_id, e)

            restart_context = self._instance_context(plugin.config, context)
            try:
                if await plugin.start(restart_context):
                    logger.info("Plugin '{}' restarted successfully", instance_id)
                    restarted.append(instance_id)
                    continue
                logger.error("Plugin '{}' failed to restart", instance_id)
            except Exception as e:
                logger.error("Failed to restart plugin '{}': {}", instance_id, e)
                plugin.transition(PluginState.ERROR)

            self.registry.remove_instance(instance_id)
            self._last_health_check.pop(instance_id, None)
            self._last_restart.pop(instance_id, None)

        return restarted

    async def _monitor(
        self,
        context: PluginContext,
        interval_seconds: float,
        restart_backoff_seconds: float,
    ) -> None:
        logger.info("Starting plugin health monitor")
        try:
            while True:
                try:
                    await self.check_instances(
                        context, interval_seconds, restart_backoff_seconds
                    )
                except Exception as e:
                    logger.warning("Plugin monitor pass failed: {}", e)
                await asyncio.sleep(interval_seconds)
        finally:
            logger.info("Plugin health monitor stopped")

    def start_monitoring(
        self,
        context: PluginContext,
        interval_seconds: float = 10,
        restart_backoff_seconds: float = 5,
    ) -> asyncio.Task:
        """
        Start the background health monitor on the running event loop.

        Calling this while a monitor is already running returns the existing task.
        """
        if self._monitor_task is not None and not self._monitor_task.done():
            return self._monitor_task

        self._monitor_task = asyncio.create_task(
            self._monitor(context, interval_seconds, restart_backoff_seconds)
        )
        return self._monitor_task

    async def stop_monitoring(self) -> None:
        """Cancel the background health monitor and wait for it to finish."""
        task = self._monitor_task
        self._monitor_task = None
        if task is None or task.done():
            return

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    @property
    def monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()
