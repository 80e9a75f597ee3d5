from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from vocbridge._api.account import fetch_vehicle_list, login
from vocbridge._api.services import fetch_service_status, submit_action
from vocbridge._api.vehicle import fetch_charge_locations, fetch_position
from vocbridge._constants import CONTENT_TYPE_CHARGE_LOCATION, CONTENT_TYPE_CLIENT_POSITION, CONTENT_TYPE_JSON
from vocbridge.exceptions import VocApiError, VocAuthenticationError, VocTransportError
from vocbridge.models import RemoteAction, ServiceState

VIN = "YV1XZ16DCM1234567"


class _FakeTransport:
    def __init__(self, responses: dict[str, Any]) -> None:
        self._responses = responses
        self.requests: list[tuple[str, str, Any, str]] = []

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        content_type: str = CONTENT_TYPE_JSON,
    ) -> Any:
        self.requests.append((method, path, json_body, content_type))
        return self._responses.get(path, {})


@pytest.mark.asyncio
async def test_fetch_vehicle_list_follows_relations() -> None:
    transport = _FakeTransport(
        {
            "customeraccounts": {
                "accountVehicleRelations": [
                    "https://vocapi.wirelesscar.net/customerapi/rest/v3.0/vehicle-account-relations/1",
                ]
            },
            "vehicle-account-relations/1": {"vehicleId": VIN},
            f"vehicles/{VIN}/attributes": {
                "vehicleType": "V60",
                "modelYear": 2020,
                "highVoltageBatterySupported": True,
                "carLocatorSupported": None,
            },
        }
    )

    vehicles = await fetch_vehicle_list(transport)

    assert len(vehicles) == 1
    vehicle = vehicles[0]
    assert vehicle.vin == VIN
    assert vehicle.display_name == "V60 / 2020"
    assert vehicle.high_voltage_battery_supported is True
    assert vehicle.car_locator_supported is False


@pytest.mark.asyncio
async def test_login_error_label_is_authentication_error() -> None:
    transport = _FakeTransport({"customeraccounts": {"errorLabel": "InvalidCredentials"}})

    with pytest.raises(VocAuthenticationError) as excinfo:
        await login(transport)

    assert excinfo.value.code == "InvalidCredentials"


@pytest.mark.asyncio
async def test_charge_locations_unwraps_list() -> None:
    endpoint = f"vehicles/{VIN}/chargeLocations?status=Accepted"
    wrapped = _FakeTransport({endpoint: {"chargingLocations": [{"name": "Home"}, "junk"]}})
    bare = _FakeTransport({endpoint: [{"name": "Work"}]})

    assert await fetch_charge_locations(wrapped, VIN) == [{"name": "Home"}]
    assert await fetch_charge_locations(bare, VIN) == [{"name": "Work"}]


@pytest.mark.asyncio
async def test_position_reads_nested_position() -> None:
    endpoint = f"vehicles/{VIN}/position?client_longitude=0.000000&client_precision=0.000000&client_latitude=0.000000"
    transport = _FakeTransport(
        {endpoint: {"position": {"latitude": "57.7", "longitude": 11.9, "timestamp": "2024-01-01T10:00:00+0000"}}}
    )

    position = await fetch_position(transport, VIN)

    assert position.latitude == 57.7
    assert position.is_valid


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("action", "method", "path", "body", "content_type"),
    [
        (RemoteAction.REFRESH_STATUS, "POST", "updatestatus", None, CONTENT_TYPE_JSON),
        (RemoteAction.START_CHARGING, "POST", "rbm/overrideDelayCharging", None, CONTENT_TYPE_JSON),
        (RemoteAction.LOCK, "POST", "lock", {}, CONTENT_TYPE_JSON),
        (RemoteAction.UNLOCK, "POST", "unlock", None, CONTENT_TYPE_JSON),
        (RemoteAction.START_HEATER, "POST", "heater/start", {}, CONTENT_TYPE_JSON),
        (RemoteAction.STOP_PRECLIMATIZATION, "POST", "preclimatization/stop", None, CONTENT_TYPE_JSON),
    ],
)
async def test_submit_action_endpoints(action, method, path, body, content_type) -> None:
    transport = _FakeTransport({f"vehicles/{VIN}/{path}": {"customerServiceId": "svc-9", "status": "Queued"}})

    submission = await submit_action(transport, VIN, action)

    assert transport.requests == [(method, f"vehicles/{VIN}/{path}", body, content_type)]
    assert submission.invocation_id == "svc-9"


@pytest.mark.asyncio
async def test_delay_charging_is_put_on_charge_location() -> None:
    transport = _FakeTransport({})
    payload = {"status": "Accepted", "delayCharging": {"enabled": True, "startTime": "22:00", "stopTime": "06:00"}}

    submission = await submit_action(transport, VIN, RemoteAction.DELAY_CHARGING, payload, target="111")

    assert transport.requests == [("PUT", f"vehicles/{VIN}/chargeLocations/111", payload, CONTENT_TYPE_CHARGE_LOCATION)]
    assert submission.invocation_id is None


@pytest.mark.asyncio
async def test_delay_charging_requires_target() -> None:
    with pytest.raises(ValueError):
        await submit_action(_FakeTransport({}), VIN, RemoteAction.DELAY_CHARGING, {})


@pytest.mark.asyncio
async def test_honk_blink_sends_client_position() -> None:
    transport = _FakeTransport({})
    body = {"clientAccuracy": 0, "clientLatitude": 57.7, "clientLongitude": 11.9}

    await submit_action(transport, VIN, RemoteAction.HONK_AND_BLINK, body)

    assert transport.requests == [("POST", f"vehicles/{VIN}/honk_blink/both", body, CONTENT_TYPE_CLIENT_POSITION)]


@pytest.mark.asyncio
async def test_submit_error_label_raises() -> None:
    transport = _FakeTransport({f"vehicles/{VIN}/lock": {"errorLabel": "CarNotConnected", "errorDescription": "x"}})

    with pytest.raises(VocApiError, match="CarNotConnected"):
        await submit_action(transport, VIN, RemoteAction.LOCK)


@pytest.mark.asyncio
async def test_fetch_service_status() -> None:
    transport = _FakeTransport(
        {f"vehicles/{VIN}/services/svc-9": {"status": "MessageDelivered", "serviceType": "RDL"}}
    )

    status = await fetch_service_status(transport, VIN, "svc-9")

    assert status.state == ServiceState.PENDING
    assert status.service_type == "RDL"


@pytest.mark.asyncio
async def test_submit_wrong_typed_field_is_transport_error() -> None:
    transport = _FakeTransport({f"vehicles/{VIN}/updatestatus": {"customerServiceId": 123456}})

    with pytest.raises(VocTransportError) as excinfo:
        await submit_action(transport, VIN, RemoteAction.REFRESH_STATUS)

    assert excinfo.value.endpoint == f"vehicles/{VIN}/updatestatus"
    assert isinstance(excinfo.value.__cause__, ValidationError)


@pytest.mark.asyncio
async def test_service_status_schema_drift_is_transport_error() -> None:
    transport = _FakeTransport({f"vehicles/{VIN}/services/svc-9": {"status": ["Successful"]}})

    with pytest.raises(VocTransportError):
        await fetch_service_status(transport, VIN, "svc-9")
