from __future__ import annotations

from typing import Any

import aiohttp
import pytest

from vocbridge._transport import VocTransport
from vocbridge.config import CloudConfig
from vocbridge.exceptions import VocAuthenticationError, VocTransportError


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self._response = response
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append((method, url, kwargs))
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _transport(response: _FakeResponse | Exception) -> tuple[VocTransport, _FakeSession]:
    config = CloudConfig(username="user@example.com", password="secret", device_id="DEVICE-1")
    session = _FakeSession(response)
    return VocTransport(config, session), session  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_request_sends_auth_and_device_headers() -> None:
    transport, session = _transport(_FakeResponse(200, '{"carLocked": true}'))

    body = await transport.request("POST", "vehicles/VIN/lock", json_body={})

    assert body == {"carLocked": True}
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://vocapi.wirelesscar.net/customerapi/rest/v3.0/vehicles/VIN/lock"
    assert kwargs["data"] == "{}"
    assert kwargs["auth"] == aiohttp.BasicAuth("user@example.com", "secret")
    assert kwargs["headers"]["X-Device-Id"] == "DEVICE-1"
    assert kwargs["headers"]["X-Request-Id"]


@pytest.mark.asyncio
async def test_empty_body_decodes_to_empty_object() -> None:
    transport, _session = _transport(_FakeResponse(200, "  "))
    assert await transport.request("GET", "vehicles/VIN/status") == {}


@pytest.mark.asyncio
async def test_401_is_authentication_error() -> None:
    transport, _session = _transport(_FakeResponse(401, "Unauthorized"))
    with pytest.raises(VocAuthenticationError):
        await transport.request("GET", "customeraccounts")


@pytest.mark.asyncio
async def test_non_2xx_is_transport_error() -> None:
    transport, _session = _transport(_FakeResponse(503, "Service Unavailable"))

    with pytest.raises(VocTransportError) as excinfo:
        await transport.request("GET", "vehicles/VIN/status")

    assert excinfo.value.status_code == 503
    assert excinfo.value.endpoint == "vehicles/VIN/status"


@pytest.mark.asyncio
async def test_invalid_json_is_transport_error() -> None:
    transport, _session = _transport(_FakeResponse(200, "<html>"))
    with pytest.raises(VocTransportError, match="Invalid JSON"):
        await transport.request("GET", "vehicles/VIN/status")


@pytest.mark.asyncio
async def test_client_error_is_wrapped() -> None:
    transport, _session = _transport(aiohttp.ClientConnectionError("refused"))

    with pytest.raises(VocTransportError) as excinfo:
        await transport.request("GET", "vehicles/VIN/status")

    assert isinstance(excinfo.value.__cause__, aiohttp.ClientConnectionError)
