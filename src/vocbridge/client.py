"""High-level async client for the Volvo On Call API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from vocbridge._api import account as _account_api
from vocbridge._api import services as _services_api
from vocbridge._api import vehicle as _vehicle_api
from vocbridge._transport import Transport, VocTransport
from vocbridge.config import CloudConfig
from vocbridge.exceptions import VocError
from vocbridge.models.location import Position
from vocbridge.models.service import ActionSubmission, RemoteAction, ServiceInvocationStatus
from vocbridge.models.vehicle import VehicleAttributes

_logger = logging.getLogger(__name__)


class CloudApi(Protocol):
    """Cloud operations the bridge consumes.

    :class:`VocClient` is the production implementation; tests pass
    in-memory fakes.
    """

    async def list_vehicles(self) -> list[VehicleAttributes]: ...

    async def get_attributes(self, vin: str) -> VehicleAttributes: ...

    async def get_status(self, vin: str) -> dict[str, Any]: ...

    async def get_charge_locations(self, vin: str) -> list[dict[str, Any]]: ...

    async def get_position(self, vin: str) -> Position: ...

    async def submit_action(
        self,
        vin: str,
        action: RemoteAction,
        payload: Mapping[str, Any] | None = None,
        *,
        target: str | None = None,
    ) -> ActionSubmission: ...

    async def poll_invocation(self, vin: str, invocation_id: str) -> ServiceInvocationStatus: ...


class VocClient:
    """Async client for the Volvo On Call customer API.

    Usage::

        async with VocClient(config) as client:
            await client.login()
            vehicles = await client.list_vehicles()
    """

    def __init__(
        self,
        config: CloudConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> VocClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = VocTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise VocError("Client not initialized. Use 'async with VocClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def login(self) -> dict[str, Any]:
        """Validate the account credentials and return the account payload."""
        account = await _account_api.login(self._require_transport())
        _logger.info(
            "Logged in to account %s as %s %s",
            account.get("accountId", "?"),
            account.get("firstName", ""),
            account.get("lastName", ""),
        )
        return account

    async def list_vehicles(self) -> list[VehicleAttributes]:
        return await _account_api.fetch_vehicle_list(self._require_transport())

    # ------------------------------------------------------------------
    # Vehicle reads
    # ------------------------------------------------------------------

    async def get_attributes(self, vin: str) -> VehicleAttributes:
        return await _vehicle_api.fetch_attributes(self._require_transport(), vin)

    async def get_status(self, vin: str) -> dict[str, Any]:
        return await _vehicle_api.fetch_status(self._require_transport(), vin)

    async def get_charge_locations(self, vin: str) -> list[dict[str, Any]]:
        return await _vehicle_api.fetch_charge_locations(self._require_transport(), vin)

    async def get_position(self, vin: str) -> Position:
        return await _vehicle_api.fetch_position(self._require_transport(), vin)

    # ------------------------------------------------------------------
    # Remote actions
    # ------------------------------------------------------------------

    async def submit_action(
        self,
        vin: str,
        action: RemoteAction,
        payload: Mapping[str, Any] | None = None,
        *,
        target: str | None = None,
    ) -> ActionSubmission:
        return await _services_api.submit_action(
            self._require_transport(),
            vin,
            action,
            payload,
            target=target,
        )

    async def poll_invocation(self, vin: str, invocation_id: str) -> ServiceInvocationStatus:
        return await _services_api.fetch_service_status(self._require_transport(), vin, invocation_id)
