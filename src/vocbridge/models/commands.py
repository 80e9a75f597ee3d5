"""Typed models for inbound MQTT command payloads.

JSON command payloads are validated here before anything reaches the
cloud; a payload that does not validate is rejected as malformed.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommandPayload(BaseModel):
    """Base class for JSON command payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class DelayChargingCommand(CommandPayload):
    """Payload of ``<ns>/<vin>/delayCharging``.

    ``delayedCharging`` defaults to enabled when omitted. Times are passed
    through as ``HH:MM`` strings.
    """

    charge_location: str = Field(..., alias="chargeLocation", min_length=1)
    enabled: bool = Field(default=True, alias="delayedCharging")
    start_time: str = Field(..., alias="startTime", min_length=1)
    stop_time: str = Field(..., alias="stopTime", min_length=1)

    @field_validator("charge_location", mode="before")
    @classmethod
    def _coerce_location_id(cls, value: object) -> object:
        # Location ids are numeric in the cloud and often sent unquoted.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class EngineStartCommand(CommandPayload):
    """JSON form of ``<ns>/<vin>/engine``: ``{"runtime": <minutes>}``."""

    runtime: int = Field(default=15, ge=1, le=15)
