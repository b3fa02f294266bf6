"""Custom exception hierarchy for zpowergraph."""

from __future__ import annotations


class ZPowerGraphError(Exception):
    """Base exception for all zpowergraph errors."""


class ConfigError(ZPowerGraphError):
    """Invalid or missing configuration."""


class DecodeError(ZPowerGraphError):
    """Telemetry payload is not valid JSON or does not match the schema."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class UnknownDeviceError(ZPowerGraphError):
    """Telemetry arrived for a friendly name that is not being tracked.

    Not fatal: the ingestion loop logs and discards the message.
    """

    def __init__(self, friendly_name: str) -> None:
        self.friendly_name = friendly_name
        super().__init__(f"Unknown device: {friendly_name!r}")


class TransportError(ZPowerGraphError):
    """MQTT-level failure (connect refused, unexpected disconnect)."""

    def __init__(self, message: str, *, reason_code: int | None = None) -> None:
        self.reason_code = reason_code
        super().__init__(message)


class StorageError(ZPowerGraphError):
    """Read or write against the SQLite store failed."""


class ReadingNotFoundError(ZPowerGraphError):
    """No stored reading exists for the requested device.

    Raised by :meth:`ReadingStore.latest_for` when a device has never
    reported.  Backfill skips such devices rather than fabricating a row
    with no baseline.
    """

    def __init__(self, friendly_name: str) -> None:
        self.friendly_name = friendly_name
        super().__init__(f"No stored reading for device {friendly_name!r}")
