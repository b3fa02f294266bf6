"""Data models for zpowergraph."""

from zpowergraph.models._base import PowerGraphBaseModel
from zpowergraph.models.reading import Reading
from zpowergraph.models.telemetry import DeviceInfo, TelemetryPayload

__all__ = [
    "DeviceInfo",
    "PowerGraphBaseModel",
    "Reading",
    "TelemetryPayload",
]
