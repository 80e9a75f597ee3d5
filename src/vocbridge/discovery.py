"""Home Assistant MQTT discovery payloads.

Every entity reads one of the retained vehicle topics through a
``value_template``; command entities write to the vehicle's command
topics. Entities are only announced for capabilities the vehicle has.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from typing import Any

from vocbridge.refresher import VehicleStateRefresher
from vocbridge.state.events import StateFacet

_ANY_TRUE = "{{{{ 'ON' if value_json.{key}.values() | select('equalto', true) | list | length > 0 else 'OFF' }}}}"


@dataclasses.dataclass(frozen=True)
class DiscoveryMessage:
    """One retained discovery config."""

    topic: str
    payload: dict[str, Any]


@dataclasses.dataclass(frozen=True)
class _Entity:
    component: str
    key: str
    name: str
    config: dict[str, Any]
    facet: StateFacet | None = StateFacet.STATUS
    command: str | None = None


class DiscoveryRegistry:
    """Vehicles whose discovery configs have been published."""

    def __init__(self) -> None:
        self._published: set[str] = set()

    def __contains__(self, vehicle_id: object) -> bool:
        return vehicle_id in self._published

    def __len__(self) -> int:
        return len(self._published)

    def add(self, vehicle_id: str) -> None:
        self._published.add(vehicle_id)

    def clear(self) -> None:
        self._published.clear()


def device_info(refresher: VehicleStateRefresher) -> dict[str, Any]:
    attributes = refresher.attributes
    return {
        "manufacturer": "Volvo",
        "model": attributes.vehicle_type if attributes is not None else "",
        "identifiers": [refresher.vehicle_id],
        "name": refresher.name,
    }


def _sensor(key: str, name: str, template: str, **extra: Any) -> _Entity:
    return _Entity("sensor", key, name, {"value_template": template, **extra})


def _status_entities(refresher: VehicleStateRefresher) -> Iterator[_Entity]:
    capabilities = refresher.capabilities

    yield _sensor(
        "odometer",
        "Odometer",
        "{{ (value_json.odometer / 1000) | round(0) }}",
        unit_of_measurement="km",
        device_class="distance",
        state_class="total_increasing",
        icon="mdi:counter",
    )
    yield _sensor(
        "fuel_level",
        "Fuel level",
        "{{ value_json.fuelAmountLevel }}",
        unit_of_measurement="%",
        icon="mdi:gas-station",
    )
    yield _sensor(
        "range",
        "Range",
        "{{ value_json.distanceToEmpty }}",
        unit_of_measurement="km",
        device_class="distance",
        icon="mdi:map-marker-distance",
    )
    yield _sensor("washer_fluid", "Washer fluid", "{{ value_json.washerFluidLevel }}", icon="mdi:wiper-wash")
    yield _sensor("service_warning", "Service warning", "{{ value_json.serviceWarningStatus }}", icon="mdi:wrench")

    yield _Entity("binary_sensor", "doors", "Doors", {"value_template": _ANY_TRUE.format(key="doors"), "device_class": "door"})
    yield _Entity(
        "binary_sensor", "windows", "Windows", {"value_template": _ANY_TRUE.format(key="windows"), "device_class": "window"}
    )
    yield _Entity(
        "binary_sensor",
        "engine_running",
        "Engine running",
        {"value_template": "{{ 'ON' if value_json.engineRunning else 'OFF' }}", "device_class": "running"},
    )
    yield _Entity(
        "lock",
        "lock",
        "Lock",
        {
            "value_template": "{{ 'LOCKED' if value_json.carLocked else 'UNLOCKED' }}",
            "payload_lock": "LOCK",
            "payload_unlock": "UNLOCK",
            "state_locked": "LOCKED",
            "state_unlocked": "UNLOCKED",
        },
        command="lock",
    )

    if capabilities.charging:
        yield _sensor(
            "battery_level",
            "Battery level",
            "{{ value_json.hvBattery.hvBatteryLevel }}",
            unit_of_measurement="%",
            device_class="battery",
        )
        yield _sensor(
            "battery_range",
            "Battery range",
            "{{ value_json.hvBattery.distanceToHVBatteryEmpty }}",
            unit_of_measurement="km",
            device_class="distance",
        )
        yield _sensor(
            "charging_status",
            "Charging status",
            "{{ value_json.hvBattery.hvBatteryChargeStatusDerived }}",
            icon="mdi:ev-station",
        )
        yield _sensor(
            "time_to_full",
            "Time to fully charged",
            "{{ value_json.hvBattery.timeToHVBatteryFullyCharged }}",
            unit_of_measurement="min",
            device_class="duration",
        )
        yield _Entity("button", "start_charging", "Start charging", {"payload_press": ""}, facet=None, command="startCharging")

    if capabilities.heater or capabilities.preclimatization:
        yield _Entity(
            "switch",
            "heater",
            "Heater",
            {
                "value_template": "{{ 'OFF' if value_json.heater.status == 'off' else 'ON' }}",
                "payload_on": "ON",
                "payload_off": "OFF",
                "icon": "mdi:radiator",
            },
            command="heater",
        )

    if capabilities.engine_start:
        yield _Entity(
            "switch",
            "engine",
            "Engine remote start",
            {
                "value_template": "{{ 'ON' if value_json.engineRunning else 'OFF' }}",
                "payload_on": "ON",
                "payload_off": "OFF",
                "icon": "mdi:engine",
            },
            command="engine",
        )

    if capabilities.honk_and_blink:
        yield _Entity("button", "honk_blink", "Honk and blink", {"payload_press": "BOTH"}, facet=None, command="honkBlink")
        yield _Entity("button", "blink", "Blink lights", {"payload_press": "LIGHTS"}, facet=None, command="honkBlink")


def _distance_entities(refresher: VehicleStateRefresher) -> Iterator[_Entity]:
    for location in refresher.charge_locations.values():
        template = (
            f"{{% for d in value_json if d.id == '{location.id}' %}}"
            "{{ d.distance_km | round(1) }}"
            "{% endfor %}"
        )
        yield _Entity(
            "sensor",
            f"distance_{location.id}",
            f"Distance to {location.name}",
            {"value_template": template, "unit_of_measurement": "km", "device_class": "distance"},
            facet=StateFacet.DISTANCES,
        )


def build_discovery(
    refresher: VehicleStateRefresher,
    *,
    namespace: str,
    prefix: str = "homeassistant",
) -> list[DiscoveryMessage]:
    """Discovery configs for every entity *refresher*'s vehicle supports.

    Parameters
    ----------
    refresher : VehicleStateRefresher
        A ready vehicle (attributes and capabilities known).
    namespace : str
        Root of the vehicle's state and command topics.
    prefix : str
        Home Assistant discovery prefix.
    """
    vehicle_id = refresher.vehicle_id
    base = f"{namespace}/{vehicle_id}"
    device = device_info(refresher)

    entities = list(_status_entities(refresher))
    if refresher.capabilities.position:
        entities.extend(_distance_entities(refresher))

    messages: list[DiscoveryMessage] = []
    for entity in entities:
        object_id = f"{vehicle_id}_{entity.key}".lower()
        payload: dict[str, Any] = {
            "name": entity.name,
            "unique_id": object_id,
            "object_id": object_id,
            "device": device,
        }
        if entity.facet is not None:
            payload["state_topic"] = f"{base}/{entity.facet}"
        if entity.command is not None:
            payload["command_topic"] = f"{base}/{entity.command}"
        payload.update(entity.config)
        messages.append(DiscoveryMessage(f"{prefix}/{entity.component}/{object_id}/config", payload))
    return messages
