"""vocbridge - Bridge Volvo On Call vehicles to MQTT and Home Assistant."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vocbridge")
except PackageNotFoundError:
    __version__ = "0+local"
from vocbridge.bridge import MqttBridge
from vocbridge.client import CloudApi, VocClient
from vocbridge.config import BridgeConfig, CloudConfig, MqttConfig, RefreshIntervals
from vocbridge.exceptions import (
    VocApiError,
    VocAuthenticationError,
    VocConfigError,
    VocError,
    VocInvocationError,
    VocInvocationFailedError,
    VocInvocationTimeoutError,
    VocMalformedCommandError,
    VocTransportError,
)
from vocbridge.fleet import FleetCoordinator
from vocbridge.invoker import RemoteCommandInvoker
from vocbridge.models import (
    Capabilities,
    ChargeLocation,
    ChargeLocationDistance,
    InvocationOutcome,
    PendingInvocation,
    Position,
    RemoteAction,
    ServiceState,
    VehicleAttributes,
)
from vocbridge.refresher import VehicleStateRefresher
from vocbridge.state import FacetUpdated, StateFacet

__all__ = [
    "__version__",
    "BridgeConfig",
    "Capabilities",
    "ChargeLocation",
    "ChargeLocationDistance",
    "CloudApi",
    "CloudConfig",
    "FacetUpdated",
    "FleetCoordinator",
    "InvocationOutcome",
    "MqttBridge",
    "MqttConfig",
    "PendingInvocation",
    "Position",
    "RefreshIntervals",
    "RemoteAction",
    "RemoteCommandInvoker",
    "ServiceState",
    "StateFacet",
    "VehicleAttributes",
    "VehicleStateRefresher",
    "VocApiError",
    "VocAuthenticationError",
    "VocClient",
    "VocConfigError",
    "VocError",
    "VocInvocationError",
    "VocInvocationFailedError",
    "VocInvocationTimeoutError",
    "VocMalformedCommandError",
    "VocTransportError",
]
