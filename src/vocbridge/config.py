"""Bridge configuration for vocbridge."""

from __future__ import annotations

import dataclasses
import os
import uuid
from typing import Any

from vocbridge._constants import API_DOMAINS
from vocbridge.exceptions import VocConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise VocConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class CloudConfig:
    """Volvo On Call account settings.

    Parameters
    ----------
    username : str
        Volvo On Call account e-mail.
    password : str
        Volvo On Call account password.
    region : str
        API region selector, one of ``"eu"``, ``"na"`` or ``"cn"``.
    device_id : str
        Stable device identifier sent as ``X-Device-Id`` with every call.
        A random upper-case UUID is generated per process when unset.
    request_timeout : float
        Seconds before a single HTTP request is abandoned.
    """

    username: str
    password: str
    region: str = "eu"
    device_id: str = dataclasses.field(default_factory=lambda: str(uuid.uuid4()).upper())
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.region not in API_DOMAINS:
            raise VocConfigError(f"region must be one of {sorted(API_DOMAINS)}, got {self.region!r}")

    @property
    def base_url(self) -> str:
        return f"https://{API_DOMAINS[self.region]}"


@dataclasses.dataclass(frozen=True)
class MqttConfig:
    """Broker connection settings."""

    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    client_id: str = ""
    keepalive: int = 60


@dataclasses.dataclass(frozen=True)
class RefreshIntervals:
    """Polling intervals in minutes. ``0`` disables the timer."""

    status_car: float = 120
    status_cloud: float = 5
    charge_locations: float = 60
    position: float = 5


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Top-level bridge configuration.

    Parameters
    ----------
    cloud : CloudConfig
        Cloud account settings.
    mqtt : MqttConfig
        Broker settings.
    intervals : RefreshIntervals
        Minutes between the four periodic refreshes.
    namespace : str
        Root of every vehicle topic (``<namespace>/<vin>/...``).
    hass_status_topic : str
        Topic on which Home Assistant announces restarts.
    discovery_prefix : str
        Home Assistant discovery prefix.
    discovery_enabled : bool
        Publish Home Assistant discovery configs.
    """

    cloud: CloudConfig
    mqtt: MqttConfig = dataclasses.field(default_factory=MqttConfig)
    intervals: RefreshIntervals = dataclasses.field(default_factory=RefreshIntervals)
    namespace: str = "volvooncall"
    hass_status_topic: str = "homeassistant/status"
    discovery_prefix: str = "homeassistant"
    discovery_enabled: bool = True

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from environment variables.

        Reads ``VOCUSERNAME``, ``VOCPASSWORD``, ``VOCREGION``, the
        ``MQTT*`` broker variables and the ``REFRESH_*`` intervals.
        Explicit keyword arguments override environment values.

        Raises
        ------
        VocConfigError
            If credentials are missing or a value cannot be parsed.
        """
        env = os.environ

        cloud = overrides.pop("cloud", None)
        if cloud is None:
            username = env.get("VOCUSERNAME")
            password = env.get("VOCPASSWORD")
            if not username or not password:
                raise VocConfigError("VOCUSERNAME and VOCPASSWORD must be set")
            cloud_kwargs: dict[str, Any] = {"username": username, "password": password}
            if env.get("VOCREGION"):
                cloud_kwargs["region"] = env["VOCREGION"].strip().lower()
            if env.get("VOCDEVICEID"):
                cloud_kwargs["device_id"] = env["VOCDEVICEID"]
            cloud = CloudConfig(**cloud_kwargs)

        mqtt = overrides.pop("mqtt", None)
        if mqtt is None:
            mqtt_kwargs: dict[str, Any] = {}
            _ENV_MQTT_MAP = {
                "MQTTHOST": "host",
                "MQTTUSER": "username",
                "MQTTPASS": "password",
                "MQTTCLIENTID": "client_id",
            }
            for env_key, field_name in _ENV_MQTT_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    mqtt_kwargs[field_name] = val
            port_env = env.get("MQTTPORT")
            if port_env is not None:
                mqtt_kwargs["port"] = _env_number("MQTTPORT", port_env, int)
            mqtt = MqttConfig(**mqtt_kwargs)

        intervals = overrides.pop("intervals", None)
        if intervals is None:
            _ENV_INTERVAL_MAP = {
                "REFRESH_STATUS_CAR": "status_car",
                "REFRESH_STATUS_CLOUD": "status_cloud",
                "REFRESH_CHARGE_LOCATIONS": "charge_locations",
                "REFRESH_POSITION": "position",
            }
            interval_kwargs: dict[str, float] = {}
            for env_key, field_name in _ENV_INTERVAL_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    interval_kwargs[field_name] = _env_number(env_key, val, float)
            intervals = RefreshIntervals(**interval_kwargs)

        config_kwargs: dict[str, Any] = {"cloud": cloud, "mqtt": mqtt, "intervals": intervals}
        _ENV_CONFIG_MAP = {
            "MQTTNAMESPACE": "namespace",
            "HASSTOPIC": "hass_status_topic",
            "HASSDISCOVERYPREFIX": "discovery_prefix",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "discovery_enabled" not in overrides:
            config_kwargs["discovery_enabled"] = _env_bool(env.get("HASSDISCOVERY"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
