"""Cached state and refresh operations for one vehicle.

A :class:`VehicleStateRefresher` owns every cached facet of a single
vehicle. Each facet has one refresh operation that replaces it wholesale
and announces a :class:`~vocbridge.state.events.FacetUpdated` event.
Follow-up work is looked up in :data:`vocbridge.state.graph.DERIVATIONS`
and awaited in order, so "attributes -> charge locations/position ->
distances" always completes within the refresh that started it.

Cloud failures never escape a refresh or action method: they are logged
and the cached state is left untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from vocbridge._api.services import client_position_body
from vocbridge.client import CloudApi
from vocbridge.exceptions import VocError, VocInvocationError
from vocbridge.geo import distance_km
from vocbridge.invoker import RemoteCommandInvoker
from vocbridge.models.location import ChargeLocation, ChargeLocationDistance, Position
from vocbridge.models.service import RemoteAction
from vocbridge.models.vehicle import Capabilities, VehicleAttributes
from vocbridge.state.events import FacetUpdated, StateFacet
from vocbridge.state.graph import DerivedOperation, dependents

_logger = logging.getLogger(__name__)

FacetListener = Callable[["VehicleStateRefresher", FacetUpdated], None]

DEFAULT_ENGINE_RUNTIME_MINUTES = 15

_HONK_BLINK_ACTIONS = frozenset(
    {RemoteAction.HONK_HORN, RemoteAction.BLINK_LIGHTS, RemoteAction.HONK_AND_BLINK}
)


class VehicleStateRefresher:
    """Owns and refreshes the cached state of one vehicle.

    Parameters
    ----------
    vehicle_id : str
        Vehicle VIN.
    api : CloudApi
        Cloud client for reads.
    invoker : RemoteCommandInvoker
        Executes remote actions.
    name : str
        Display name, used for Home Assistant devices and log lines.
    """

    def __init__(
        self,
        vehicle_id: str,
        api: CloudApi,
        invoker: RemoteCommandInvoker,
        *,
        name: str = "",
    ) -> None:
        self.vehicle_id = vehicle_id
        self.name = name or vehicle_id
        self._api = api
        self._invoker = invoker
        self._listeners: list[FacetListener] = []

        self.attributes: VehicleAttributes | None = None
        self.capabilities = Capabilities()
        self.status: dict[str, Any] = {}
        self.charge_locations: dict[str, ChargeLocation] = {}
        self.position: Position | None = None
        self.distances: list[ChargeLocationDistance] = []

        self._operations: Mapping[DerivedOperation, Callable[[], Awaitable[None]]] = {
            DerivedOperation.REFRESH_CHARGE_LOCATIONS: self.refresh_charge_locations,
            DerivedOperation.REFRESH_POSITION: self.refresh_position,
            DerivedOperation.RECOMPUTE_DISTANCES: self.recompute_distances,
        }

    def __repr__(self) -> str:
        return f"VehicleStateRefresher({self.vehicle_id!r})"

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: FacetListener) -> Callable[[], None]:
        """Register *listener* for facet updates and return its remover."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def remove_listeners(self) -> None:
        """Drop every listener (vehicle removed from the account)."""
        self._listeners.clear()

    async def _facet_updated(self, facet: StateFacet) -> None:
        event = FacetUpdated(vehicle_id=self.vehicle_id, facet=facet)
        for listener in list(self._listeners):
            try:
                listener(self, event)
            except Exception:
                _logger.exception("Listener failed for %s %s update", self.vehicle_id, facet)
        for operation in dependents(facet):
            await self._operations[operation]()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        """Status, attributes and (when charging) charge locations are known."""
        if not self.status or self.attributes is None:
            return False
        return not self.capabilities.charging or bool(self.charge_locations)

    def snapshot(self, facet: StateFacet) -> Any:
        """JSON-serialisable payload for *facet*."""
        if facet == StateFacet.ATTRIBUTES:
            return dict(self.attributes.raw) if self.attributes is not None else {}
        if facet == StateFacet.STATUS:
            return dict(self.status)
        if facet == StateFacet.POSITION:
            return dict(self.position.raw) if self.position is not None else {}
        if facet == StateFacet.CHARGE_LOCATIONS:
            return {location_id: loc.as_payload() for location_id, loc in self.charge_locations.items()}
        return [distance.model_dump() for distance in self.distances]

    # ------------------------------------------------------------------
    # Facet refreshes
    # ------------------------------------------------------------------

    async def refresh_attributes(self) -> None:
        try:
            attributes = await self._api.get_attributes(self.vehicle_id)
        except VocError as exc:
            _logger.warning("Vehicle %s update attributes failed: %s", self.vehicle_id, exc)
            return
        _logger.debug("Vehicle %s attributes: %s", self.vehicle_id, attributes.raw)
        self.attributes = attributes
        self.capabilities = Capabilities.from_attributes(attributes)
        await self._facet_updated(StateFacet.ATTRIBUTES)

    async def refresh_status_from_cloud(self) -> None:
        try:
            status = await self._api.get_status(self.vehicle_id)
        except VocError as exc:
            _logger.warning("Vehicle %s status from cloud failed: %s", self.vehicle_id, exc)
            return
        _logger.debug("Vehicle %s status from cloud: %s", self.vehicle_id, status)
        self.status = dict(status)
        await self._facet_updated(StateFacet.STATUS)

    async def refresh_status_from_car(self, force: bool = True) -> None:
        """Ask the car itself for fresh status, then re-read the cloud.

        With ``force=False`` the round-trip to the car is skipped and only
        the cloud snapshot is re-read.
        """
        if not force:
            await self.refresh_status_from_cloud()
            return
        try:
            await self._invoker.invoke(self.vehicle_id, RemoteAction.REFRESH_STATUS)
        except VocInvocationError as exc:
            _logger.warning("Vehicle %s status from car failed: %s", self.vehicle_id, exc)
            return
        await self.refresh_status_from_cloud()

    async def refresh_charge_locations(self) -> None:
        if not self.capabilities.charging:
            _logger.debug("Vehicle %s: charging not supported, not updating charge locations", self.vehicle_id)
            return
        try:
            items = await self._api.get_charge_locations(self.vehicle_id)
        except VocError as exc:
            _logger.warning("Vehicle %s charge locations update failed: %s", self.vehicle_id, exc)
            return
        locations: dict[str, ChargeLocation] = {}
        for item in items:
            location = ChargeLocation.from_api(item)
            locations[location.id] = location
        _logger.debug("Vehicle %s charge locations: %s", self.vehicle_id, list(locations))
        self.charge_locations = locations
        await self._facet_updated(StateFacet.CHARGE_LOCATIONS)

    async def refresh_position(self) -> None:
        if not self.capabilities.position:
            _logger.debug("Vehicle %s: position not supported", self.vehicle_id)
            return
        try:
            position = await self._api.get_position(self.vehicle_id)
        except VocError as exc:
            _logger.warning("Vehicle %s position failed: %s", self.vehicle_id, exc)
            return
        _logger.debug("Vehicle %s position: %s", self.vehicle_id, position.raw)
        self.position = position
        await self._facet_updated(StateFacet.POSITION)

    async def recompute_distances(self) -> None:
        position = self.position
        if position is None or not position.is_valid or not self.charge_locations:
            return
        self.distances = [
            ChargeLocationDistance(
                id=location.id,
                name=location.name,
                distance_km=distance_km(position.latitude, position.longitude, location.latitude, location.longitude),
            )
            for location in self.charge_locations.values()
        ]
        _logger.debug("Vehicle %s distances updated: %s", self.vehicle_id, self.distances)
        await self._facet_updated(StateFacet.DISTANCES)

    # ------------------------------------------------------------------
    # Remote actions
    # ------------------------------------------------------------------

    async def _run_action(
        self,
        action: RemoteAction,
        payload: Mapping[str, Any] | None = None,
        *,
        target: str | None = None,
        follow_up: Callable[[], Awaitable[None]] | None = None,
    ) -> bool:
        try:
            await self._invoker.invoke(self.vehicle_id, action, payload, target=target)
        except VocInvocationError as exc:
            _logger.warning("Vehicle %s %s failed: %s", self.vehicle_id, action, exc)
            return False
        _logger.info("Vehicle %s %s succeeded", self.vehicle_id, action)
        await (follow_up or self.refresh_status_from_car)()
        return True

    async def start_charging(self) -> bool:
        return await self._run_action(RemoteAction.START_CHARGING)

    async def delay_charging(
        self,
        location_id: str,
        start_time: str,
        stop_time: str,
        enabled: bool = True,
    ) -> bool:
        """Set the delayed charging window of one charge location.

        The cloud already holds the new schedule once the update is
        accepted, so the follow-up reads the cloud instead of the car.
        """
        payload = {
            "status": "Accepted",
            "delayCharging": {"enabled": enabled, "startTime": start_time, "stopTime": stop_time},
        }
        _logger.info("Vehicle %s delaying charging at %s: %s", self.vehicle_id, location_id, payload)
        return await self._run_action(
            RemoteAction.DELAY_CHARGING,
            payload,
            target=location_id,
            follow_up=self.refresh_status_from_cloud,
        )

    async def lock(self) -> bool:
        return await self._run_action(RemoteAction.LOCK)

    async def unlock(self) -> bool:
        return await self._run_action(RemoteAction.UNLOCK)

    async def start_heater(self) -> bool:
        return await self._run_action(RemoteAction.START_HEATER)

    async def stop_heater(self) -> bool:
        return await self._run_action(RemoteAction.STOP_HEATER)

    async def start_preclimatization(self) -> bool:
        return await self._run_action(RemoteAction.START_PRECLIMATIZATION)

    async def stop_preclimatization(self) -> bool:
        return await self._run_action(RemoteAction.STOP_PRECLIMATIZATION)

    async def set_heater(self, on: bool) -> bool:
        """Switch climate on/off using the best supported mechanism.

        Prefers the remote heater, falls back to preclimatization and drops
        the command when neither is supported.
        """
        if self.capabilities.heater:
            return await (self.start_heater() if on else self.stop_heater())
        if self.capabilities.preclimatization:
            return await (self.start_preclimatization() if on else self.stop_preclimatization())
        _logger.debug("Vehicle %s supports neither heater nor preclimatization, dropping command", self.vehicle_id)
        return False

    async def start_engine(self, runtime_minutes: int = DEFAULT_ENGINE_RUNTIME_MINUTES) -> bool:
        if not self.capabilities.engine_start:
            _logger.debug("Vehicle %s: engine remote start not supported", self.vehicle_id)
            return False
        return await self._run_action(RemoteAction.START_ENGINE, {"runtime": runtime_minutes})

    async def stop_engine(self) -> bool:
        if not self.capabilities.engine_start:
            _logger.debug("Vehicle %s: engine remote start not supported", self.vehicle_id)
            return False
        return await self._run_action(RemoteAction.STOP_ENGINE)

    async def honk_and_blink(self, mode: RemoteAction = RemoteAction.HONK_AND_BLINK) -> bool:
        """Honk, blink or both, *mode* being one of the honk/blink actions.

        The cloud wants the requester's coordinates, so the cached vehicle
        position is sent.
        """
        if mode not in _HONK_BLINK_ACTIONS:
            raise ValueError(f"{mode} is not a honk/blink action")
        if not self.capabilities.honk_and_blink:
            _logger.debug("Vehicle %s: honk and blink not supported", self.vehicle_id)
            return False
        position = self.position
        if position is None or not position.is_valid:
            _logger.debug("Vehicle %s: no position known, cannot honk/blink", self.vehicle_id)
            return False
        assert position.latitude is not None and position.longitude is not None  # noqa: S101
        return await self._run_action(mode, client_position_body(position.latitude, position.longitude))
