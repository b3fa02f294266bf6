"""Power reading model."""

from __future__ import annotations

from pydantic import Field

from zpowergraph.models._base import FriendlyName, Measurement, PowerGraphBaseModel, UInt16


class Reading(PowerGraphBaseModel):
    """One persisted observation for a smart plug.

    Parameters
    ----------
    friendly_name : str
        Human-assigned device name, used as the device key. Compared
        exactly; surrounding whitespace is not stripped.
    timestamp : int
        Seconds since the Unix epoch.
    current : float
        Current draw in amperes.
    energy : float
        Cumulative energy as reported by the device.
    power : int
        Power draw in watts.
    voltage : int
        Voltage in volts.
    """

    friendly_name: FriendlyName
    timestamp: int = Field(..., ge=0)
    current: Measurement
    energy: Measurement
    power: UInt16
    voltage: UInt16

    def as_idle(self, *, timestamp: int) -> Reading:
        """Return a zero-draw copy of this reading stamped at *timestamp*.

        ``energy`` and ``voltage`` change slowly and are carried over;
        ``current`` and ``power`` are assumed zero while the device is silent,
        since a drawing device would have reported.
        """
        return self.model_copy(update={"timestamp": timestamp, "current": 0.0, "power": 0})
