"""Remote action endpoints.

Endpoints:
  - vehicles/<vin>/<action path> (trigger, POST or PUT)
  - vehicles/<vin>/services/<id> (poll)

Every trigger answers with a service invocation handle that is polled
until the cloud reports ``Successful`` or ``Failed``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from vocbridge._api._common import get_object, parse_model, raise_for_error_label
from vocbridge._constants import (
    CONTENT_TYPE_CHARGE_LOCATION,
    CONTENT_TYPE_CLIENT_POSITION,
    CONTENT_TYPE_JSON,
)
from vocbridge._transport import Transport
from vocbridge.models.service import ActionSubmission, RemoteAction, ServiceInvocationStatus

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ActionEndpoint:
    method: str
    path: str
    content_type: str = CONTENT_TYPE_JSON
    # Body sent when the caller supplies none. ``None`` sends no body.
    default_body: Mapping[str, Any] | None = None
    needs_target: bool = False


_ACTION_ENDPOINTS: dict[RemoteAction, _ActionEndpoint] = {
    RemoteAction.REFRESH_STATUS: _ActionEndpoint("POST", "updatestatus"),
    RemoteAction.START_CHARGING: _ActionEndpoint("POST", "rbm/overrideDelayCharging"),
    RemoteAction.DELAY_CHARGING: _ActionEndpoint(
        "PUT",
        "chargeLocations/{target}",
        content_type=CONTENT_TYPE_CHARGE_LOCATION,
        needs_target=True,
    ),
    RemoteAction.LOCK: _ActionEndpoint("POST", "lock", default_body={}),
    RemoteAction.UNLOCK: _ActionEndpoint("POST", "unlock"),
    RemoteAction.START_HEATER: _ActionEndpoint("POST", "heater/start", default_body={}),
    RemoteAction.STOP_HEATER: _ActionEndpoint("POST", "heater/stop"),
    RemoteAction.START_PRECLIMATIZATION: _ActionEndpoint("POST", "preclimatization/start", default_body={}),
    RemoteAction.STOP_PRECLIMATIZATION: _ActionEndpoint("POST", "preclimatization/stop"),
    RemoteAction.START_ENGINE: _ActionEndpoint("POST", "engine/start"),
    RemoteAction.STOP_ENGINE: _ActionEndpoint("POST", "engine/stop"),
    RemoteAction.HONK_HORN: _ActionEndpoint(
        "POST", "honk_blink/horn", content_type=CONTENT_TYPE_CLIENT_POSITION
    ),
    RemoteAction.BLINK_LIGHTS: _ActionEndpoint(
        "POST", "honk_blink/lights", content_type=CONTENT_TYPE_CLIENT_POSITION
    ),
    RemoteAction.HONK_AND_BLINK: _ActionEndpoint(
        "POST", "honk_blink/both", content_type=CONTENT_TYPE_CLIENT_POSITION
    ),
}


def client_position_body(latitude: float, longitude: float) -> dict[str, Any]:
    """Body for honk/blink actions, which require the requester's position."""
    return {"clientAccuracy": 0, "clientLatitude": latitude, "clientLongitude": longitude}


async def submit_action(
    transport: Transport,
    vin: str,
    action: RemoteAction,
    payload: Mapping[str, Any] | None = None,
    *,
    target: str | None = None,
) -> ActionSubmission:
    """Trigger *action* and return the cloud's submission response.

    Parameters
    ----------
    payload : mapping or None
        Request body. Falls back to the action's default body.
    target : str or None
        Sub-resource id for actions addressed at one resource
        (the charge location id for delay charging).
    """
    endpoint = _ACTION_ENDPOINTS[action]
    if endpoint.needs_target and not target:
        raise ValueError(f"{action} requires a target resource id")

    path = f"vehicles/{vin}/{endpoint.path.format(target=target)}"
    body = dict(payload) if payload is not None else endpoint.default_body
    response = await transport.request(
        endpoint.method,
        path,
        json_body=None if body is None else dict(body),
        content_type=endpoint.content_type,
    )
    raise_for_error_label(path, response)
    submission = parse_model(ActionSubmission, path, response if isinstance(response, dict) else {})
    _logger.debug(
        "Submitted %s for %s: invocation=%s status=%s",
        action,
        vin,
        submission.invocation_id,
        submission.status,
    )
    return submission


async def fetch_service_status(transport: Transport, vin: str, invocation_id: str) -> ServiceInvocationStatus:
    endpoint = f"vehicles/{vin}/services/{invocation_id}"
    body = await get_object(transport, endpoint)
    return parse_model(ServiceInvocationStatus, endpoint, body)
