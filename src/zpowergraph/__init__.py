"""zpowergraph - Store Zigbee2MQTT smart plug power telemetry in SQLite."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("zpowergraph")
except PackageNotFoundError:
    __version__ = "0+local"
from zpowergraph.config import ZPowerGraphConfig
from zpowergraph.exceptions import (
    ConfigError,
    DecodeError,
    ReadingNotFoundError,
    StorageError,
    TransportError,
    UnknownDeviceError,
    ZPowerGraphError,
)
from zpowergraph.ingestion import IngestionLoop, decode_reading, decode_telemetry
from zpowergraph.models import DeviceInfo, Reading, TelemetryPayload
from zpowergraph.state import LivenessState, LivenessTracker
from zpowergraph.storage import ReadingStore

__all__ = [
    "__version__",
    "ConfigError",
    "DecodeError",
    "DeviceInfo",
    "IngestionLoop",
    "LivenessState",
    "LivenessTracker",
    "Reading",
    "ReadingNotFoundError",
    "ReadingStore",
    "StorageError",
    "TelemetryPayload",
    "TransportError",
    "UnknownDeviceError",
    "ZPowerGraphConfig",
    "ZPowerGraphError",
    "decode_reading",
    "decode_telemetry",
]
