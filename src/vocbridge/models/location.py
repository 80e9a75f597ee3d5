"""Position, charge location and distance models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vocbridge.models._base import VocBaseModel


def _safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Position(VocBaseModel):
    """Latest vehicle geocoordinate.

    Parameters
    ----------
    latitude : float or None
        Latitude in degrees.
    longitude : float or None
        Longitude in degrees.
    heading : float or None
        Heading in degrees.
    speed : float or None
        Speed reported alongside the fix.
    timestamp : str or None
        ISO timestamp of the fix as sent by the cloud.
    """

    latitude: float | None = None
    longitude: float | None = None
    heading: float | None = None
    speed: float | None = None
    timestamp: str | None = None

    @field_validator("latitude", "longitude", "heading", "speed", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return _safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @property
    def is_valid(self) -> bool:
        """Whether both coordinates are present and non-zero."""
        return bool(self.latitude) and bool(self.longitude)


class ChargeLocation(BaseModel):
    """A saved charge location with its derived display name."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    latitude: float | None = None
    longitude: float | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, location: dict[str, Any]) -> ChargeLocation:
        """Build a charge location from one ``chargingLocations`` item.

        The id is the last path segment of the ``chargeLocation`` resource
        URI. Unnamed locations are labelled by their address.
        """
        position = location.get("position")
        if not isinstance(position, dict):
            position = {}
        street = position.get("streetAddress")
        if location.get("name"):
            name = f"{location['name']}, {street}"
        else:
            name = f"{street}, {position.get('postalCode')} {position.get('city')}"
        resource = str(location.get("chargeLocation") or "")
        return cls(
            id=resource.rsplit("/", 1)[-1],
            name=name,
            latitude=_safe_float(position.get("latitude")),
            longitude=_safe_float(position.get("longitude")),
            raw=location,
        )

    def as_payload(self) -> dict[str, Any]:
        """Snapshot published on ``<ns>/<vin>/charge_locations/<id>``."""
        return {"id": self.id, "name": self.name, "location": self.raw}


class ChargeLocationDistance(BaseModel):
    """Distance from the current position to one charge location."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    distance_km: float
