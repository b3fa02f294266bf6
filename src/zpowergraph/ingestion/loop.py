"""The ingestion loop.

Each iteration races the next queued MQTT item against a poll timer:

- a message is decoded, checked against the tracked device set, and stored;
- a transport failure is logged and the loop carries on;
- a timer expiry runs the staleness check and backfills silent devices with
  a zero-draw copy of their last stored reading.

The loop is the only mutator of the liveness tracker and the only writer to
the store.  Storage errors propagate and end the loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from zpowergraph._mqtt import MqttMessage, QueueItem
from zpowergraph.config import DEFAULT_POLL_INTERVAL, DEFAULT_STALENESS_THRESHOLD
from zpowergraph.exceptions import DecodeError, ReadingNotFoundError, TransportError, UnknownDeviceError
from zpowergraph.ingestion.decode import decode_telemetry
from zpowergraph.models.reading import Reading
from zpowergraph.state.liveness import LivenessTracker
from zpowergraph.storage import ReadingStore

_logger = logging.getLogger(__name__)


def _epoch_seconds() -> int:
    return int(time.time())


@dataclass(frozen=True)
class MessageReceived:
    message: MqttMessage


@dataclass(frozen=True)
class TransportFailed:
    error: TransportError


@dataclass(frozen=True)
class PollTimeout:
    now: int


LoopEvent = MessageReceived | TransportFailed | PollTimeout


class IngestionLoop:
    """Consume telemetry, track liveness, and backfill silent devices.

    Parameters
    ----------
    tracker : LivenessTracker
        Initialized tracker for the configured devices.
    store : ReadingStore
        Store with its schema already ensured.
    source : asyncio.Queue
        Queue fed by :class:`~zpowergraph._mqtt.MqttRuntime`.
    staleness_threshold : float
        Seconds of silence after which a device is backfilled.
    poll_interval : float
        Seconds to wait for a message before running the staleness check.
    clock : callable, optional
        Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        tracker: LivenessTracker,
        store: ReadingStore,
        source: asyncio.Queue[QueueItem],
        *,
        staleness_threshold: float = DEFAULT_STALENESS_THRESHOLD,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._tracker = tracker
        self._store = store
        self._source = source
        self._staleness_threshold = staleness_threshold
        self._poll_interval = poll_interval
        self._clock = clock or _epoch_seconds

    @property
    def staleness_threshold(self) -> float:
        return self._staleness_threshold

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    async def next_event(self) -> LoopEvent:
        """Wait for the next queued item, or for the poll interval to elapse."""
        try:
            item = await asyncio.wait_for(self._source.get(), self._poll_interval)
        except TimeoutError:
            return PollTimeout(now=self._clock())
        if isinstance(item, TransportError):
            return TransportFailed(error=item)
        return MessageReceived(message=item)

    def handle_message(self, message: MqttMessage) -> Reading | None:
        """Decode and store one message.

        Returns the stored reading, or ``None`` when the message was
        discarded (malformed payload or untracked device).
        """
        try:
            telemetry = decode_telemetry(message.payload, topic=message.topic)
        except DecodeError as exc:
            _logger.warning("Discarding malformed payload on topic %s: %s", message.topic, exc)
            return None

        now = self._clock()
        try:
            self._tracker.touch(telemetry.friendly_name, now)
        except UnknownDeviceError:
            _logger.warning("Received data for unknown device: %r", telemetry.friendly_name)
            return None

        _logger.debug("Decoded telemetry: %s", telemetry.model_dump())
        reading = telemetry.to_reading(timestamp=now)
        _logger.info(
            "Received data for device %s: current: %s, energy: %s, power: %s, voltage: %s",
            reading.friendly_name,
            reading.current,
            reading.energy,
            reading.power,
            reading.voltage,
        )
        self._store.append(reading)
        return reading

    def handle_timeout(self, now: int | None = None) -> list[Reading]:
        """Backfill every stale device and return the rows written.

        A stale device with no stored reading is skipped, but its liveness is
        still reset so the lookup is not repeated on every tick.
        """
        if now is None:
            now = self._clock()

        backfilled: list[Reading] = []
        for device in self._tracker.stale_devices(now, self._staleness_threshold):
            _logger.info('No data received for device "%s" in the last %ss.', device, self._staleness_threshold)
            try:
                latest = self._store.latest_for(device)
            except ReadingNotFoundError:
                _logger.debug("No stored reading for device %s, skipping backfill", device)
                self._tracker.touch(device, now)
                continue

            synthetic = latest.as_idle(timestamp=now)
            self._store.append(synthetic)
            self._tracker.touch(device, now)
            backfilled.append(synthetic)
        return backfilled

    async def step(self) -> LoopEvent:
        """Run one iteration and return the event it handled."""
        event = await self.next_event()
        if isinstance(event, MessageReceived):
            self.handle_message(event.message)
        elif isinstance(event, TransportFailed):
            _logger.error("Error polling MQTT transport: %s", event.error)
        else:
            self.handle_timeout(event.now)
        return event

    async def run_forever(self) -> None:
        """Iterate until cancelled or a :class:`StorageError` escapes."""
        _logger.debug(
            "Ingestion loop started devices=%s threshold=%ss poll_interval=%ss",
            list(self._tracker.devices),
            self._staleness_threshold,
            self._poll_interval,
        )
        while True:
            await self.step()
