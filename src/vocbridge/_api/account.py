"""Account endpoints.

Endpoints:
  - customeraccounts (login check and relation links)
  - vehicle-account-relations/<id> (vehicle id per relation)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from vocbridge._api._common import get_object
from vocbridge._api.vehicle import fetch_attributes
from vocbridge._transport import Transport
from vocbridge.exceptions import VocApiError, VocAuthenticationError
from vocbridge.models.vehicle import VehicleAttributes

_logger = logging.getLogger(__name__)

ACCOUNT_ENDPOINT = "customeraccounts"
_RELATIONS_MARKER = "/vehicle-account-relations"


async def login(transport: Transport) -> dict[str, Any]:
    """Validate credentials by reading the customer account.

    Raises
    ------
    VocAuthenticationError
        If the cloud rejects the username/password.
    """
    try:
        return await get_object(transport, ACCOUNT_ENDPOINT)
    except VocAuthenticationError:
        raise
    except VocApiError as exc:
        raise VocAuthenticationError(
            f"Login rejected: {exc}",
            code=exc.code,
            endpoint=ACCOUNT_ENDPOINT,
        ) from exc


def _relation_path(link: str) -> str:
    """Strip the API prefix from an absolute relation link."""
    index = link.find(_RELATIONS_MARKER)
    return link[index + 1 :] if index >= 0 else link


async def fetch_vehicle_ids(transport: Transport) -> list[str]:
    """Resolve every vehicle id related to the account."""
    account = await get_object(transport, ACCOUNT_ENDPOINT)
    links = account.get("accountVehicleRelations") or []

    async def _vehicle_id(link: str) -> str:
        relation = await get_object(transport, _relation_path(str(link)))
        return str(relation.get("vehicleId") or "")

    ids = await asyncio.gather(*(_vehicle_id(link) for link in links))
    return [vehicle_id for vehicle_id in ids if vehicle_id]


async def fetch_vehicle_list(transport: Transport) -> list[VehicleAttributes]:
    """List vehicles on the account with their attributes.

    ``vin`` is set to the relation's vehicle id, which is what every
    per-vehicle endpoint is addressed by.
    """
    vehicle_ids = await fetch_vehicle_ids(transport)
    _logger.debug("Account vehicle ids: %s", vehicle_ids)

    async def _attributes(vehicle_id: str) -> VehicleAttributes:
        attributes = await fetch_attributes(transport, vehicle_id)
        if attributes.vin == vehicle_id:
            return attributes
        return attributes.model_copy(update={"vin": vehicle_id})

    return list(await asyncio.gather(*(_attributes(vehicle_id) for vehicle_id in vehicle_ids)))
