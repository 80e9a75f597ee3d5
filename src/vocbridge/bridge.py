"""MQTT bridge: publishes vehicle facets and routes inbound messages."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from typing import Any, Protocol

from vocbridge._mqtt import MqttRuntime
from vocbridge.client import CloudApi
from vocbridge.config import BridgeConfig
from vocbridge.discovery import DiscoveryRegistry, build_discovery
from vocbridge.fleet import FleetCoordinator
from vocbridge.invoker import RemoteCommandInvoker
from vocbridge.refresher import VehicleStateRefresher
from vocbridge.state.events import FacetUpdated, StateFacet

_logger = logging.getLogger(__name__)


class MqttPort(Protocol):
    """Subset of :class:`~vocbridge._mqtt.MqttRuntime` the bridge uses."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def publish(self, topic: str, payload: str, *, retain: bool = False) -> None: ...

    def subscribe(self, topic: str) -> None: ...

    def unsubscribe(self, topic: str) -> None: ...


class MqttBridge:
    """Wires the fleet to the broker.

    Parameters
    ----------
    config : BridgeConfig
        Bridge configuration.
    api : CloudApi
        Logged-in cloud client.
    mqtt : MqttPort, optional
        Broker connection. A :class:`MqttRuntime` bound to the running loop
        is created by :meth:`run` when omitted.
    invoker : RemoteCommandInvoker, optional
        Shared remote action invoker.
    """

    def __init__(
        self,
        config: BridgeConfig,
        api: CloudApi,
        *,
        mqtt: MqttPort | None = None,
        invoker: RemoteCommandInvoker | None = None,
    ) -> None:
        self._config = config
        self._mqtt = mqtt
        self._registry = DiscoveryRegistry()
        self._background: set[asyncio.Task[Any]] = set()
        self.fleet = FleetCoordinator(
            api,
            invoker or RemoteCommandInvoker(api),
            self,
            namespace=config.namespace,
            intervals=config.intervals,
            listener=self._on_facet_updated,
        )

    @property
    def registry(self) -> DiscoveryRegistry:
        return self._registry

    def _require_mqtt(self) -> MqttPort:
        if self._mqtt is None:
            raise RuntimeError("MQTT connection not set up. Use 'await bridge.run(...)'")
        return self._mqtt

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self, stop: asyncio.Event) -> None:
        """Connect, start the schedules and serve until *stop* is set."""
        if self._mqtt is None:
            self._mqtt = MqttRuntime(
                self._config.mqtt,
                loop=asyncio.get_running_loop(),
                on_connect=self.on_connect,
                on_message=self.on_message,
            )
        mqtt = self._mqtt
        mqtt.start()
        self.fleet.start()
        try:
            await stop.wait()
        finally:
            _logger.info("Shutting down")
            await self.fleet.stop()
            background = list(self._background)
            for task in background:
                task.cancel()
            await asyncio.gather(*background, return_exceptions=True)
            mqtt.stop()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Background task failed", exc_info=exc)

    # ------------------------------------------------------------------
    # Subscriptions (used by the fleet coordinator)
    # ------------------------------------------------------------------

    def subscribe(self, topic: str) -> None:
        self._require_mqtt().subscribe(topic)

    def unsubscribe(self, topic: str) -> None:
        self._require_mqtt().unsubscribe(topic)

    # ------------------------------------------------------------------
    # Broker callbacks (on the event loop)
    # ------------------------------------------------------------------

    def on_connect(self) -> None:
        """Runs after every (re)connect: resubscribe and re-list vehicles."""
        self.subscribe(self._config.hass_status_topic)
        self._spawn(self.fleet.refresh_fleet())

    def on_message(self, topic: str, payload: str) -> None:
        if topic == self._config.hass_status_topic:
            _logger.info("Home Assistant status changed (%s), republishing", payload)
            self.republish_all()
            return
        self._spawn(self.fleet.handle_command(topic, payload))

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def _on_facet_updated(self, refresher: VehicleStateRefresher, event: FacetUpdated) -> None:
        self.publish_facet(refresher, event.facet)
        self.publish_discovery(refresher)

    def _publish_json(self, topic: str, value: Any) -> None:
        self._require_mqtt().publish(topic, json.dumps(value), retain=True)

    def publish_facet(self, refresher: VehicleStateRefresher, facet: StateFacet) -> None:
        """Publish the retained snapshot of one facet. Empty facets are skipped."""
        snapshot = refresher.snapshot(facet)
        if not snapshot:
            return
        base = f"{self._config.namespace}/{refresher.vehicle_id}"
        _logger.info("Publish %s %s", refresher.vehicle_id, facet)
        if facet == StateFacet.CHARGE_LOCATIONS:
            for location_id, location in snapshot.items():
                self._publish_json(f"{base}/charge_locations/{location_id}", location)
            return
        self._publish_json(f"{base}/{facet}", snapshot)

    def publish_discovery(self, refresher: VehicleStateRefresher) -> bool:
        """Announce a ready vehicle to Home Assistant once."""
        if not self._config.discovery_enabled:
            return False
        if refresher.vehicle_id in self._registry or not refresher.is_ready:
            return False
        messages = build_discovery(
            refresher,
            namespace=self._config.namespace,
            prefix=self._config.discovery_prefix,
        )
        for message in messages:
            self._publish_json(message.topic, message.payload)
        self._registry.add(refresher.vehicle_id)
        _logger.info("Published %d discovery configs for %s", len(messages), refresher.vehicle_id)
        return True

    def republish_all(self) -> None:
        """Forget published discovery and republish everything."""
        self._registry.clear()
        for refresher in self.fleet.vehicles.values():
            self.publish_discovery(refresher)
            for facet in StateFacet:
                self.publish_facet(refresher, facet)
