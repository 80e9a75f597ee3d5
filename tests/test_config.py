from __future__ import annotations

import pytest

from vocbridge.config import BridgeConfig, CloudConfig, MqttConfig, RefreshIntervals
from vocbridge.exceptions import VocConfigError

_ENV_KEYS = (
    "VOCUSERNAME",
    "VOCPASSWORD",
    "VOCREGION",
    "VOCDEVICEID",
    "MQTTHOST",
    "MQTTPORT",
    "MQTTUSER",
    "MQTTPASS",
    "MQTTCLIENTID",
    "MQTTNAMESPACE",
    "HASSTOPIC",
    "HASSDISCOVERYPREFIX",
    "HASSDISCOVERY",
    "REFRESH_STATUS_CAR",
    "REFRESH_STATUS_CLOUD",
    "REFRESH_CHARGE_LOCATIONS",
    "REFRESH_POSITION",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VOCUSERNAME", "user@example.com")
    monkeypatch.setenv("VOCPASSWORD", "secret")


def test_defaults(credentials) -> None:
    config = BridgeConfig.from_env()

    assert config.cloud.username == "user@example.com"
    assert config.cloud.region == "eu"
    assert config.cloud.base_url == "https://vocapi.wirelesscar.net"
    assert config.mqtt == MqttConfig()
    assert config.intervals == RefreshIntervals(status_car=120, status_cloud=5, charge_locations=60, position=5)
    assert config.namespace == "volvooncall"
    assert config.hass_status_topic == "homeassistant/status"
    assert config.discovery_enabled is True


def test_env_values(credentials, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VOCREGION", "NA")
    monkeypatch.setenv("VOCDEVICEID", "DEVICE-1")
    monkeypatch.setenv("MQTTHOST", "broker.local")
    monkeypatch.setenv("MQTTPORT", "8883")
    monkeypatch.setenv("MQTTUSER", "mqtt")
    monkeypatch.setenv("MQTTPASS", "pw")
    monkeypatch.setenv("HASSTOPIC", "hass/status")
    monkeypatch.setenv("HASSDISCOVERY", "no")
    monkeypatch.setenv("REFRESH_STATUS_CAR", "0")
    monkeypatch.setenv("REFRESH_POSITION", "2.5")

    config = BridgeConfig.from_env()

    assert config.cloud.region == "na"
    assert config.cloud.device_id == "DEVICE-1"
    assert config.mqtt.host == "broker.local"
    assert config.mqtt.port == 8883
    assert (config.mqtt.username, config.mqtt.password) == ("mqtt", "pw")
    assert config.hass_status_topic == "hass/status"
    assert config.discovery_enabled is False
    assert config.intervals.status_car == 0
    assert config.intervals.position == 2.5
    assert config.intervals.status_cloud == 5


def test_overrides_win(credentials, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MQTTNAMESPACE", "from-env")

    config = BridgeConfig.from_env(namespace="override", discovery_enabled=False)

    assert config.namespace == "override"
    assert config.discovery_enabled is False


def test_missing_credentials() -> None:
    with pytest.raises(VocConfigError):
        BridgeConfig.from_env()


def test_invalid_number(credentials, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MQTTPORT", "not-a-port")
    with pytest.raises(VocConfigError, match="MQTTPORT"):
        BridgeConfig.from_env()


def test_invalid_region() -> None:
    with pytest.raises(VocConfigError):
        CloudConfig(username="u", password="p", region="mars")


def test_device_id_is_stable_per_config() -> None:
    config = CloudConfig(username="u", password="p")
    assert config.device_id == config.device_id
    assert config.device_id == config.device_id.upper()
