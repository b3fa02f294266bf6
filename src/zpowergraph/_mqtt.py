"""Internal MQTT settings and runtime.

The runtime runs paho-mqtt's network loop in its own thread and hands every
inbound message, and every connection-level failure, to an asyncio queue on
the ingestion loop's event loop.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from zpowergraph._redact import redact_for_log
from zpowergraph.config import ZPowerGraphConfig
from zpowergraph.exceptions import TransportError

#: Zigbee2MQTT state messages are requested with "exactly once" delivery.
QOS_EXACTLY_ONCE = 2


@dataclass(frozen=True)
class MqttSettings:
    """Broker connection details and subscriptions."""

    host: str
    port: int
    client_id: str
    topics: tuple[str, ...]
    username: str | None = None
    password: str | None = None
    keepalive: int = 30
    qos: int = QOS_EXACTLY_ONCE

    @classmethod
    def from_config(cls, config: ZPowerGraphConfig) -> MqttSettings:
        return cls(
            host=config.server,
            port=config.port,
            client_id=build_client_id(),
            topics=build_topics(config.topic, config.friendly_names),
            username=config.user if config.has_credentials else None,
            password=config.password if config.has_credentials else None,
            keepalive=config.mqtt_keepalive,
        )


@dataclass(frozen=True)
class MqttMessage:
    """One inbound PUBLISH, as received."""

    topic: str
    payload: bytes


def build_topics(base_topic: str, friendly_names: Iterable[str]) -> tuple[str, ...]:
    """Return ``<base_topic>/<friendly_name>`` for every name."""
    base = base_topic.rstrip("/")
    return tuple(f"{base}/{name}" for name in friendly_names)


def build_client_id() -> str:
    """Random client id so several instances can share a broker."""
    return f"zpowergraph-{secrets.randbelow(100000)}"


QueueItem = MqttMessage | TransportError


class MqttRuntime:
    """Threaded paho-mqtt runtime that feeds an asyncio queue."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[QueueItem],
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._queue = queue
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._settings: MqttSettings | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def _emit(self, item: QueueItem) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def _on_connect(
        self,
        client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if reason_code.value != 0:
            self._logger.warning("MQTT connect failed: %s", reason_code)
            self._emit(TransportError(f"MQTT connect failed: {reason_code}", reason_code=reason_code.value))
            return
        self._logger.debug("MQTT connected successfully reason=%s", reason_code)
        settings = self._settings
        if settings is None or not settings.topics:
            return
        # Subscriptions are repeated on every (re)connect; clean sessions drop them.
        client.subscribe([(topic, settings.qos) for topic in settings.topics])
        for topic in settings.topics:
            self._logger.debug("Subscribed to topic %s qos=%s", topic, settings.qos)

    def _on_connect_fail(self, _client: mqtt.Client, _userdata: Any) -> None:
        self._logger.debug("MQTT connection attempt failed")
        self._emit(TransportError("MQTT connection attempt failed"))

    def _on_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        self._logger.debug("Received PUBLISH topic=%s bytes=%d", msg.topic, len(msg.payload))
        self._emit(MqttMessage(topic=msg.topic, payload=bytes(msg.payload)))

    def _on_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if not self._running:
            return
        self._logger.debug("MQTT disconnected: %s", reason_code)
        if reason_code.value != 0:
            self._emit(TransportError(f"MQTT disconnected: {reason_code}", reason_code=reason_code.value))

    def start(self, settings: MqttSettings) -> None:
        """Connect in the background and subscribe to ``settings.topics``.

        paho keeps retrying the connection from its network thread, so an
        unreachable broker shows up as queued :class:`TransportError` items
        rather than an exception here.
        """
        self.stop()
        self._logger.debug("MQTT runtime start requested settings=%s", redact_for_log(asdict(settings)))

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if settings.username is not None and settings.password is not None:
            client.username_pw_set(settings.username, settings.password)

        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect

        self._settings = settings
        self._client = client
        self._running = True
        client.connect_async(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._settings = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
