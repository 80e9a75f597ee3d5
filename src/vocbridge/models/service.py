"""Remote action and service invocation models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from vocbridge.models._base import VocBaseModel


class RemoteAction(enum.StrEnum):
    """Remote actions understood by the cloud.

    Values double as log labels and as the names accepted by
    :meth:`vocbridge.client.VocClient.submit_action`.
    """

    REFRESH_STATUS = "updateStatus"
    START_CHARGING = "startCharging"
    DELAY_CHARGING = "delayCharging"
    LOCK = "lock"
    UNLOCK = "unlock"
    START_HEATER = "startHeater"
    STOP_HEATER = "stopHeater"
    START_PRECLIMATIZATION = "startPreclimatization"
    STOP_PRECLIMATIZATION = "stopPreclimatization"
    START_ENGINE = "startEngine"
    STOP_ENGINE = "stopEngine"
    HONK_HORN = "honkHorn"
    BLINK_LIGHTS = "blinkLights"
    HONK_AND_BLINK = "honkAndBlink"


class ServiceState(enum.StrEnum):
    """Terminal classification of a cloud service status string."""

    SUCCESSFUL = "Successful"
    FAILED = "Failed"
    PENDING = "Pending"

    @classmethod
    def _missing_(cls, value: object) -> ServiceState:
        # Started, MessageDelivered, Queued, ... are all still in flight.
        return cls.PENDING


class InvocationOutcome(enum.StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class ServiceInvocationStatus(VocBaseModel):
    """Response of ``vehicles/<vin>/services/<id>``."""

    status: str = ""
    failure_reason: str | None = None
    service_type: str | None = None

    @property
    def state(self) -> ServiceState:
        return ServiceState(self.status)


class ActionSubmission(VocBaseModel):
    """Response of the call that submits a remote action.

    Most actions answer with ``customerServiceId``. Charge location updates
    answer with a ``service`` resource URI instead, or with no service at
    all when the submitted payload already matches the cloud state.
    """

    customer_service_id: str | None = None
    service: str | None = None
    status: str | None = None
    service_type: str | None = None

    @property
    def invocation_id(self) -> str | None:
        if self.customer_service_id:
            return self.customer_service_id
        if self.service:
            return self.service.rstrip("/").rsplit("/", 1)[-1] or None
        return None


@dataclass(slots=True)
class PendingInvocation:
    """Tracking state for one outstanding remote action."""

    vehicle_id: str
    action: RemoteAction
    invocation_id: str | None = None
    attempt_count: int = 0
    outcome: InvocationOutcome = InvocationOutcome.PENDING
    failure_reason: str | None = None
    result: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.outcome == InvocationOutcome.SUCCEEDED
