"""Threaded paho-mqtt runtime bridged onto an asyncio loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from vocbridge.config import MqttConfig


class MqttRuntime:
    """Broker connection whose callbacks are delivered on an asyncio loop.

    paho runs its network loop in a background thread. ``on_connect`` and
    ``on_message`` are re-scheduled onto *loop* with
    ``call_soon_threadsafe`` so the rest of the bridge stays single-threaded.
    ``on_connect`` fires again after every reconnect.
    """

    def __init__(
        self,
        config: MqttConfig,
        *,
        loop: asyncio.AbstractEventLoop,
        on_connect: Callable[[], None],
        on_message: Callable[[str, str], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_connect = on_connect
        self._on_message = on_message
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the network loop is running."""
        return self._running

    def start(self) -> None:
        """Start connecting to the broker in the background."""
        self.stop()
        config = self._config
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s client_id=%s",
            config.host,
            config.port,
            config.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
        )
        client.enable_logger(self._logger)
        if config.username:
            client.username_pw_set(config.username, config.password)

        def on_connect(
            _c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.info("Connected to MQTT broker %s:%s", config.host, config.port)
            self._loop.call_soon_threadsafe(self._on_connect)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                payload = msg.payload.decode("utf-8")
            except UnicodeDecodeError:
                self._logger.warning("Dropping non UTF-8 message on %s", msg.topic)
                return
            self._logger.debug("Received PUBLISH topic=%s payload=%s", msg.topic, payload)
            self._loop.call_soon_threadsafe(self._on_message, msg.topic, payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.warning("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect_async(config.host, config.port, keepalive=config.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Disconnect and stop the network loop if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def _require_client(self) -> mqtt.Client:
        if self._client is None:
            raise RuntimeError("MQTT runtime is not started")
        return self._client

    def publish(self, topic: str, payload: str, *, retain: bool = False) -> None:
        self._logger.debug("MQTT publish topic=%s retain=%s", topic, retain)
        self._require_client().publish(topic, payload, qos=0, retain=retain)

    def subscribe(self, topic: str) -> None:
        self._logger.debug("MQTT subscribing topic=%s", topic)
        self._require_client().subscribe(topic, qos=0)

    def unsubscribe(self, topic: str) -> None:
        self._logger.debug("MQTT unsubscribing topic=%s", topic)
        self._require_client().unsubscribe(topic)
