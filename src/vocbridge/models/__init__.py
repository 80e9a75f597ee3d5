"""Typed models for Volvo On Call API payloads."""

from vocbridge.models.commands import DelayChargingCommand, EngineStartCommand
from vocbridge.models.location import ChargeLocation, ChargeLocationDistance, Position
from vocbridge.models.service import (
    ActionSubmission,
    InvocationOutcome,
    PendingInvocation,
    RemoteAction,
    ServiceInvocationStatus,
    ServiceState,
)
from vocbridge.models.vehicle import Capabilities, VehicleAttributes

__all__ = [
    "ActionSubmission",
    "Capabilities",
    "ChargeLocation",
    "ChargeLocationDistance",
    "DelayChargingCommand",
    "EngineStartCommand",
    "InvocationOutcome",
    "PendingInvocation",
    "Position",
    "RemoteAction",
    "ServiceInvocationStatus",
    "ServiceState",
    "VehicleAttributes",
]
