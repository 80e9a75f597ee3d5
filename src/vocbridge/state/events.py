"""Typed facet update events."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StateFacet(StrEnum):
    """Independently refreshed parts of a vehicle's cached state.

    Values are the topic suffixes the facets are published under.
    """

    ATTRIBUTES = "attributes"
    STATUS = "status"
    CHARGE_LOCATIONS = "charge_locations"
    POSITION = "position"
    DISTANCES = "distances"


class FacetUpdated(BaseModel):
    """A facet of one vehicle was replaced wholesale."""

    model_config = ConfigDict(frozen=True)

    vehicle_id: str = Field(..., description="Vehicle VIN")
    facet: StateFacet
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("vehicle_id")
    @classmethod
    def _normalize_vehicle_id(cls, value: str) -> str:
        vehicle_id = value.strip()
        if not vehicle_id:
            raise ValueError("vehicle_id must be non-empty")
        return vehicle_id
