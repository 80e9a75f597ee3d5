"""Fleet membership, periodic refresh schedules and command routing."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any, Protocol

from pydantic import ValidationError

from vocbridge.client import CloudApi
from vocbridge.config import RefreshIntervals
from vocbridge.exceptions import VocError, VocMalformedCommandError
from vocbridge.invoker import RemoteCommandInvoker
from vocbridge.models.commands import DelayChargingCommand, EngineStartCommand
from vocbridge.models.service import RemoteAction
from vocbridge.refresher import FacetListener, VehicleStateRefresher

_logger = logging.getLogger(__name__)

VehicleOperation = Callable[[VehicleStateRefresher], Awaitable[None]]
CommandHandler = Callable[[VehicleStateRefresher, str, str], Awaitable[bool]]

# Command topic suffixes, ``<namespace>/<vin>/<action>``.
COMMAND_ACTIONS: tuple[str, ...] = (
    "startCharging",
    "delayCharging",
    "lock",
    "heater",
    "engine",
    "honkBlink",
)

_HONK_BLINK_MODES: Mapping[str, RemoteAction] = MappingProxyType(
    {
        "HORN": RemoteAction.HONK_HORN,
        "LIGHTS": RemoteAction.BLINK_LIGHTS,
        "BOTH": RemoteAction.HONK_AND_BLINK,
    }
)


class CommandSubscriber(Protocol):
    """Where command topic subscriptions are registered (the MQTT runtime)."""

    def subscribe(self, topic: str) -> None: ...

    def unsubscribe(self, topic: str) -> None: ...


def _keyword(topic: str, payload: str, allowed: tuple[str, ...]) -> str:
    value = payload.strip().upper()
    if value not in allowed:
        raise VocMalformedCommandError(
            f"expected one of {', '.join(allowed)}, got {payload!r}",
            topic=topic,
        )
    return value


def _json_object(topic: str, payload: str) -> dict[str, Any]:
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise VocMalformedCommandError(f"invalid JSON: {exc}", topic=topic) from exc
    if not isinstance(data, dict):
        raise VocMalformedCommandError("expected a JSON object", topic=topic)
    return data


async def _start_charging(refresher: VehicleStateRefresher, topic: str, payload: str) -> bool:
    return await refresher.start_charging()


async def _delay_charging(refresher: VehicleStateRefresher, topic: str, payload: str) -> bool:
    try:
        command = DelayChargingCommand.model_validate(_json_object(topic, payload))
    except ValidationError as exc:
        raise VocMalformedCommandError(f"invalid delayCharging payload: {exc}", topic=topic) from exc
    return await refresher.delay_charging(
        command.charge_location,
        command.start_time,
        command.stop_time,
        enabled=command.enabled,
    )


async def _lock(refresher: VehicleStateRefresher, topic: str, payload: str) -> bool:
    if _keyword(topic, payload, ("LOCK", "UNLOCK")) == "LOCK":
        return await refresher.lock()
    return await refresher.unlock()


async def _heater(refresher: VehicleStateRefresher, topic: str, payload: str) -> bool:
    return await refresher.set_heater(_keyword(topic, payload, ("ON", "OFF")) == "ON")


async def _engine(refresher: VehicleStateRefresher, topic: str, payload: str) -> bool:
    if payload.lstrip().startswith("{"):
        try:
            command = EngineStartCommand.model_validate(_json_object(topic, payload))
        except ValidationError as exc:
            raise VocMalformedCommandError(f"invalid engine payload: {exc}", topic=topic) from exc
        return await refresher.start_engine(command.runtime)
    if _keyword(topic, payload, ("ON", "OFF")) == "ON":
        return await refresher.start_engine()
    return await refresher.stop_engine()


async def _honk_blink(refresher: VehicleStateRefresher, topic: str, payload: str) -> bool:
    mode = _keyword(topic, payload, tuple(_HONK_BLINK_MODES))
    return await refresher.honk_and_blink(_HONK_BLINK_MODES[mode])


_COMMAND_HANDLERS: Mapping[str, CommandHandler] = MappingProxyType(
    {
        "startCharging": _start_charging,
        "delayCharging": _delay_charging,
        "lock": _lock,
        "heater": _heater,
        "engine": _engine,
        "honkBlink": _honk_blink,
    }
)


class FleetCoordinator:
    """Owns the vehicles on the account and drives them.

    Parameters
    ----------
    api : CloudApi
        Cloud client.
    invoker : RemoteCommandInvoker
        Shared by every vehicle's refresher.
    subscriber : CommandSubscriber
        Receives command topic (un)subscriptions.
    namespace : str
        Topic root of command topics.
    intervals : RefreshIntervals
        Minutes between periodic refreshes; ``0`` disables one.
    listener : callable, optional
        Attached to every new vehicle's refresher.
    sleep : callable
        Awaitable sleep used by the schedules.
    """

    def __init__(
        self,
        api: CloudApi,
        invoker: RemoteCommandInvoker,
        subscriber: CommandSubscriber,
        *,
        namespace: str = "volvooncall",
        intervals: RefreshIntervals | None = None,
        listener: FacetListener | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._api = api
        self._invoker = invoker
        self._subscriber = subscriber
        self._namespace = namespace
        self._intervals = intervals or RefreshIntervals()
        self._listener = listener
        self._sleep = sleep
        self._vehicles: dict[str, VehicleStateRefresher] = {}
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def vehicles(self) -> Mapping[str, VehicleStateRefresher]:
        """Current vehicles keyed by VIN (read-only view)."""
        return MappingProxyType(self._vehicles)

    def command_topics(self, vehicle_id: str) -> list[str]:
        return [f"{self._namespace}/{vehicle_id}/{action}" for action in COMMAND_ACTIONS]

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    async def refresh_fleet(self) -> None:
        """Reconcile the known vehicles with the account listing."""
        try:
            listing = await self._api.list_vehicles()
        except VocError as exc:
            _logger.warning("Listing vehicles failed: %s", exc)
            return

        listed = {attributes.vin: attributes for attributes in listing if attributes.vin}

        for vehicle_id in [vid for vid in self._vehicles if vid not in listed]:
            refresher = self._vehicles.pop(vehicle_id)
            refresher.remove_listeners()
            for topic in self.command_topics(vehicle_id):
                self._subscriber.unsubscribe(topic)
            _logger.info("Vehicle %s is no longer on the account", vehicle_id)

        added: list[VehicleStateRefresher] = []
        for vehicle_id, attributes in listed.items():
            if vehicle_id in self._vehicles:
                continue
            refresher = VehicleStateRefresher(
                vehicle_id,
                self._api,
                self._invoker,
                name=attributes.display_name,
            )
            if self._listener is not None:
                refresher.add_listener(self._listener)
            self._vehicles[vehicle_id] = refresher
            added.append(refresher)
            _logger.info("Found vehicle %s (%s)", refresher.name, vehicle_id)

        for vehicle_id in self._vehicles:
            for topic in self.command_topics(vehicle_id):
                self._subscriber.subscribe(topic)

        await asyncio.gather(*(self._initial_fetch(refresher) for refresher in added))

    @staticmethod
    async def _initial_fetch(refresher: VehicleStateRefresher) -> None:
        await refresher.refresh_attributes()
        await refresher.refresh_status_from_cloud()

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic refresh tasks on the running loop."""
        if self._tasks:
            return
        schedules: list[tuple[str, float, VehicleOperation]] = [
            ("status_car", self._intervals.status_car, lambda r: r.refresh_status_from_car()),
            ("status_cloud", self._intervals.status_cloud, lambda r: r.refresh_status_from_cloud()),
            ("charge_locations", self._intervals.charge_locations, lambda r: r.refresh_charge_locations()),
            ("position", self._intervals.position, lambda r: r.refresh_position()),
        ]
        for name, minutes, operation in schedules:
            if minutes <= 0:
                _logger.info("Periodic %s refresh disabled", name)
                continue
            _logger.debug("Scheduling %s refresh every %s minutes", name, minutes)
            task = asyncio.create_task(self._run_schedule(name, minutes * 60, operation), name=f"vocbridge-{name}")
            self._tasks.append(task)

    async def stop(self) -> None:
        """Cancel the periodic refresh tasks."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_schedule(self, name: str, seconds: float, operation: VehicleOperation) -> None:
        while True:
            await self._sleep(seconds)
            _logger.debug("Periodic %s refresh for %d vehicle(s)", name, len(self._vehicles))
            try:
                await self.for_each_vehicle(operation)
            except Exception:
                _logger.exception("Periodic %s refresh failed", name)

    async def for_each_vehicle(self, operation: VehicleOperation) -> None:
        """Run *operation* on every current vehicle concurrently.

        A failure on one vehicle is logged and does not affect the others.
        """
        refreshers = list(self._vehicles.values())
        results = await asyncio.gather(*(operation(refresher) for refresher in refreshers), return_exceptions=True)
        for refresher, result in zip(refreshers, results):
            if isinstance(result, Exception):
                _logger.error("Vehicle %s operation failed", refresher.vehicle_id, exc_info=result)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def handle_command(self, topic: str, payload: str) -> None:
        """Route ``<namespace>/<vin>/<action>`` to the vehicle's action.

        Unknown vehicles, unknown actions and malformed payloads are logged
        and dropped.
        """
        prefix = f"{self._namespace}/"
        parts = topic[len(prefix) :].split("/") if topic.startswith(prefix) else []
        if len(parts) != 2:
            _logger.warning("Ignoring message on unexpected topic %s", topic)
            return
        vehicle_id, action = parts

        refresher = self._vehicles.get(vehicle_id)
        if refresher is None:
            _logger.warning("Ignoring %s command for unknown vehicle %s", action, vehicle_id)
            return
        handler = _COMMAND_HANDLERS.get(action)
        if handler is None:
            _logger.warning("Ignoring unknown command %s for vehicle %s", action, vehicle_id)
            return

        _logger.info("Vehicle %s received %s command: %s", vehicle_id, action, payload)
        try:
            await handler(refresher, topic, payload)
        except VocMalformedCommandError as exc:
            _logger.warning("Dropping malformed %s command for %s: %s", action, vehicle_id, exc)
