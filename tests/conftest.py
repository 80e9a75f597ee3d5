from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from vocbridge.invoker import RemoteCommandInvoker
from vocbridge.models import ActionSubmission, Position, RemoteAction, VehicleAttributes
from vocbridge.models.service import ServiceInvocationStatus


class FakeCloud:
    """In-memory stand-in for :class:`vocbridge.client.VocClient`.

    ``submissions`` and ``poll_statuses`` are consumed in order; once empty
    every submission gets ``customerServiceId=svc-1`` and every poll
    answers ``Successful``. Exceptions in either queue are raised.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail: dict[str, Exception] = {}
        self.vehicles: list[VehicleAttributes] = []
        self.attributes: dict[str, VehicleAttributes] = {}
        self.status: dict[str, dict[str, Any]] = {}
        self.charge_locations: dict[str, list[dict[str, Any]]] = {}
        self.positions: dict[str, Position] = {}
        self.submissions: list[Any] = []
        self.poll_statuses: list[Any] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def submitted(self) -> list[RemoteAction]:
        return [call[2] for call in self.calls if call[0] == "submit_action"]

    async def list_vehicles(self) -> list[VehicleAttributes]:
        self._record("list_vehicles")
        return list(self.vehicles)

    async def get_attributes(self, vin: str) -> VehicleAttributes:
        self._record("get_attributes", vin)
        return self.attributes[vin]

    async def get_status(self, vin: str) -> dict[str, Any]:
        self._record("get_status", vin)
        return dict(self.status.get(vin, {}))

    async def get_charge_locations(self, vin: str) -> list[dict[str, Any]]:
        self._record("get_charge_locations", vin)
        return list(self.charge_locations.get(vin, []))

    async def get_position(self, vin: str) -> Position:
        self._record("get_position", vin)
        return self.positions[vin]

    async def submit_action(
        self,
        vin: str,
        action: RemoteAction,
        payload: Mapping[str, Any] | None = None,
        *,
        target: str | None = None,
    ) -> ActionSubmission:
        self._record("submit_action", vin, action, payload, target)
        if not self.submissions:
            return ActionSubmission.model_validate({"customerServiceId": "svc-1"})
        item = self.submissions.pop(0)
        if isinstance(item, Exception):
            raise item
        return ActionSubmission.model_validate(item)

    async def poll_invocation(self, vin: str, invocation_id: str) -> ServiceInvocationStatus:
        self._record("poll_invocation", vin, invocation_id)
        if not self.poll_statuses:
            return ServiceInvocationStatus.model_validate({"status": "Successful"})
        item = self.poll_statuses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            item = {"status": item}
        return ServiceInvocationStatus.model_validate(item)

    def add_vehicle(self, vin: str, **attributes: Any) -> VehicleAttributes:
        """Register *vin* with camelCase attribute flags and list it."""
        model = VehicleAttributes.model_validate(
            {"vin": vin, "vehicleType": "XC40", "modelYear": 2021, **attributes}
        )
        self.attributes[vin] = model
        self.vehicles.append(model)
        return model


@pytest.fixture
def cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def invoker(cloud: FakeCloud, sleeps: list[float]) -> RemoteCommandInvoker:
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return RemoteCommandInvoker(cloud, sleep=_sleep)
