"""Zigbee2MQTT smart plug telemetry models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

from zpowergraph.models._base import FriendlyName, Measurement, PowerGraphBaseModel, UInt16
from zpowergraph.models.reading import Reading


class DeviceInfo(PowerGraphBaseModel):
    """Device metadata nested under ``device`` in a telemetry payload.

    Keys arrive in camelCase (``friendlyName``, ``ieeeAddr``, ...).  Only
    ``friendly_name`` is required; the rest is accepted but never persisted.
    """

    model_config = ConfigDict(alias_generator=to_camel)

    friendly_name: FriendlyName
    ieee_addr: StrictStr | None = None
    manufacturer_id: UInt16 | None = Field(
        default=None,
        validation_alias=AliasChoices("manufacturerID", "manufacturerId", "manufacturer_id"),
        serialization_alias="manufacturerID",
    )
    manufacturer_name: StrictStr | None = None
    model: StrictStr | None = None


class TelemetryPayload(PowerGraphBaseModel):
    """Decoded smart plug state message.

    Measurements are flat top-level keys; ``state`` and ``child_lock`` are
    accepted but not persisted.
    """

    current: Measurement
    energy: Measurement
    power: UInt16
    voltage: UInt16
    device: DeviceInfo
    state: StrictStr | None = None
    child_lock: StrictStr | None = None

    @property
    def friendly_name(self) -> str:
        return self.device.friendly_name

    def to_reading(self, *, timestamp: int) -> Reading:
        """Project onto a :class:`Reading` stamped at *timestamp*."""
        return Reading(
            friendly_name=self.device.friendly_name,
            timestamp=timestamp,
            current=self.current,
            energy=self.energy,
            power=self.power,
            voltage=self.voltage,
        )

    def to_payload(self) -> dict[str, Any]:
        """Encode back into the wire layout (camelCase device, flat measurements)."""
        return self.model_dump(by_alias=True, exclude_none=True)
