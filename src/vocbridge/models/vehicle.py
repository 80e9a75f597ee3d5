"""Vehicle attribute and capability models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from vocbridge.models._base import VocBaseModel


class Capabilities(BaseModel):
    """Typed capability flags derived from a single attributes fetch.

    All flags default to ``False`` so that a vehicle whose attributes have
    not been fetched yet supports nothing.
    """

    model_config = ConfigDict(frozen=True)

    charging: bool = False
    position: bool = False
    heater: bool = False
    preclimatization: bool = False
    engine_start: bool = False
    honk_and_blink: bool = False

    @classmethod
    def from_attributes(cls, attributes: VehicleAttributes) -> Capabilities:
        return cls(
            charging=attributes.high_voltage_battery_supported,
            position=attributes.car_locator_supported,
            heater=attributes.remote_heater_supported,
            preclimatization=attributes.preclimatization_supported,
            engine_start=attributes.engine_start_supported,
            honk_and_blink=attributes.honk_and_blink_supported,
        )


class VehicleAttributes(VocBaseModel):
    """Static vehicle metadata from ``vehicles/<vin>/attributes``."""

    vin: str = ""
    vehicle_type: str = ""
    model_year: int | None = None
    registration_number: str = ""
    high_voltage_battery_supported: bool = False
    car_locator_supported: bool = False
    remote_heater_supported: bool = False
    preclimatization_supported: bool = False
    engine_start_supported: bool = False
    honk_and_blink_supported: bool = False

    @property
    def display_name(self) -> str:
        """``"<type> / <year>[ / <plate>]"`` as shown in the account listing."""
        name = f"{self.vehicle_type} / {self.model_year if self.model_year is not None else ''}"
        if self.registration_number:
            name = f"{name} / {self.registration_number}"
        return name
