"""Per-vehicle read endpoints.

Endpoints:
  - vehicles/<vin>/attributes
  - vehicles/<vin>/status
  - vehicles/<vin>/chargeLocations?status=Accepted
  - vehicles/<vin>/position
"""

from __future__ import annotations

from typing import Any

from vocbridge._api._common import get_object, parse_model, raise_for_error_label
from vocbridge._transport import Transport
from vocbridge.models.location import Position
from vocbridge.models.vehicle import VehicleAttributes

_POSITION_QUERY = "client_longitude=0.000000&client_precision=0.000000&client_latitude=0.000000"


async def fetch_attributes(transport: Transport, vin: str) -> VehicleAttributes:
    endpoint = f"vehicles/{vin}/attributes"
    body = await get_object(transport, endpoint)
    return parse_model(VehicleAttributes, endpoint, body)


async def fetch_status(transport: Transport, vin: str) -> dict[str, Any]:
    """Return the cloud's latest status snapshot as-is."""
    return await get_object(transport, f"vehicles/{vin}/status")


async def fetch_charge_locations(transport: Transport, vin: str) -> list[dict[str, Any]]:
    """Return accepted charge location payloads.

    The cloud wraps the list in ``chargingLocations``; older responses
    return the bare list.
    """
    endpoint = f"vehicles/{vin}/chargeLocations?status=Accepted"
    body = await transport.request("GET", endpoint)
    raise_for_error_label(endpoint, body)
    if isinstance(body, dict):
        body = body.get("chargingLocations") or []
    if not isinstance(body, list):
        return []
    return [item for item in body if isinstance(item, dict)]


async def fetch_position(transport: Transport, vin: str) -> Position:
    endpoint = f"vehicles/{vin}/position?{_POSITION_QUERY}"
    body = await get_object(transport, endpoint)
    position = body.get("position")
    return parse_model(Position, endpoint, position if isinstance(position, dict) else {})
