"""
Tests for the Plugin lifecycle contract.

This test suite covers:
1. Default values of a new plugin
2. State-change notification (zero, one and many listeners)
3. Unsubscribe and failing listeners
4. Async start/stop/health of a concrete plugin
5. Cooperative cancellation
"""

import asyncio

import pytest

from plugvisor.plugin.base import Plugin, PluginState, raise_if_cancelled
from plugvisor.plugin.models import PluginConfig, PluginContext


class SamplePlugin(Plugin):
    """Plugin that simulates async work at each step."""

    plugin_type = "sample"

    def __init__(self, plugin_id: str = "", config: PluginConfig | None = None):
        super().__init__(plugin_id, config)
        self.health_checks = 0

    async def start(self, context, cancel=None):
        self.transition(PluginState.STARTING)
        try:
            await asyncio.sleep(0)
            raise_if_cancelled(cancel)
        except asyncio.CancelledError:
            self.transition(PluginState.STOPPED)
            raise
        self.transition(PluginState.RUNNING)
        return True

    async def stop(self, cancel=None):
        await asyncio.sleep(0)
        self.transition(PluginState.STOPPED)

    async def check_health(self):
        await asyncio.sleep(0)
        self.health_checks += 1
        return True


class TestPluginDefaults:
    """Test values of a freshly constructed plugin."""

    def test_defaults(self):
        """A new plugin starts DISABLED with an empty config."""
        plugin = SamplePlugin()

        assert plugin.id == ""
        assert plugin.type == "sample"
        assert plugin.state == PluginState.DISABLED
        assert plugin.config == PluginConfig()

    def test_id_and_config_from_constructor(self):
        """The owning component sets id and config at construction."""
        config = PluginConfig(id="test-plugin", type="test", enabled=True)
        plugin = SamplePlugin("test-plugin:device", config)

        assert plugin.id == "test-plugin:device"
        assert plugin.config is config

    def test_id_is_read_only(self):
        """Callers cannot reassign id or state."""
        plugin = SamplePlugin("fixed")

        with pytest.raises(AttributeError):
            plugin.id = "other"
        with pytest.raises(AttributeError):
            plugin.state = PluginState.RUNNING

    def test_config_is_assignable(self):
        """config can be replaced after construction."""
        plugin = SamplePlugin()
        config = PluginConfig(id="new")

        plugin.config = config

        assert plugin.config is config


class TestStateNotification:
    """Test synchronous state-change notification."""

    def test_transition_without_listeners(self):
        """Assigning state with no listeners should not fail."""
        plugin = SamplePlugin()

        plugin.transition(PluginState.STARTING)

        assert plugin.state == PluginState.STARTING

    def test_transition_notifies_listener(self):
        """Listeners receive the plugin and the new state."""
        plugin = SamplePlugin("p")
        received = []

        plugin.subscribe(lambda source, state: received.append((source, state)))
        plugin.transition(PluginState.RUNNING)

        assert received == [(plugin, PluginState.RUNNING)]
        assert plugin.state == PluginState.RUNNING

    def test_repeated_transition_notifies_again(self):
        """Assigning the same state twice notifies twice."""
        plugin = SamplePlugin()
        received = []
        plugin.subscribe(lambda _, state: received.append(state))

        plugin.transition(PluginState.STOPPED)
        plugin.transition(PluginState.STOPPED)

        assert received == [PluginState.STOPPED, PluginState.STOPPED]

    def test_state_is_stored_before_notification(self):
        """Listeners observe the new value on the plugin itself."""
        plugin = SamplePlugin()
        seen = []
        plugin.subscribe(lambda source, _: seen.append(source.state))

        plugin.transition(PluginState.RUNNING)

        assert seen == [PluginState.RUNNING]

    def test_unsubscribe(self):
        """An unsubscribed listener is no longer called."""
        plugin = SamplePlugin()
        received = []
        unsubscribe = plugin.subscribe(lambda _, state: received.append(state))

        plugin.transition(PluginState.STARTING)
        unsubscribe()
        unsubscribe()
        plugin.transition(PluginState.RUNNING)

        assert received == [PluginState.STARTING]

    def test_failing_listener_does_not_block_others(self):
        """A listener error is logged and the remaining listeners still run."""
        plugin = SamplePlugin()
        received = []

        def broken(_, __):
            raise ValueError("listener error")

        plugin.subscribe(broken)
        plugin.subscribe(lambda _, state: received.append(state))

        plugin.transition(PluginState.RUNNING)

        assert received == [PluginState.RUNNING]
        assert plugin.state == PluginState.RUNNING


class TestLifecycle:
    """Test async lifecycle operations of a concrete plugin."""

    @pytest.mark.asyncio
    async def test_start_sets_running(self):
        """start() should report success and reach RUNNING."""
        plugin = SamplePlugin("p")
        states = []
        plugin.subscribe(lambda _, state: states.append(state))

        result = await plugin.start(PluginContext())

        assert result is True
        assert plugin.state == PluginState.RUNNING
        assert states == [PluginState.STARTING, PluginState.RUNNING]

    @pytest.mark.asyncio
    async def test_stop_sets_stopped(self):
        """stop() should reach STOPPED."""
        plugin = SamplePlugin("p")
        await plugin.start(PluginContext())

        await plugin.stop()

        assert plugin.state == PluginState.STOPPED

    @pytest.mark.asyncio
    async def test_check_health_does_not_change_state(self):
        """check_health() is a pure probe."""
        plugin = SamplePlugin("p")
        await plugin.start(PluginContext())

        assert await plugin.check_health() is True
        assert plugin.state == PluginState.RUNNING
        assert plugin.health_checks == 1

    @pytest.mark.asyncio
    async def test_cancelled_start_does_not_claim_running(self):
        """A set cancel signal should abort start without reaching RUNNING."""
        plugin = SamplePlugin("p")
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(asyncio.CancelledError):
            await plugin.start(PluginContext(), cancel)

        assert plugin.state == PluginState.STOPPED


class TestRaiseIfCancelled:
    """Test the cancellation helper."""

    def test_no_signal(self):
        """None or an unset event should not raise."""
        raise_if_cancelled(None)
        raise_if_cancelled(asyncio.Event())

    def test_set_signal(self):
        """A set event should raise CancelledError."""
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(asyncio.CancelledError):
            raise_if_cancelled(cancel)
