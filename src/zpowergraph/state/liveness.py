"""Per-device liveness tracking.

A :class:`LivenessTracker` maps each configured friendly name to the time
its last reading (real or backfilled) was accepted.  It is owned by the
ingestion loop and only ever mutated from the loop's task.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import StrEnum

from zpowergraph.exceptions import UnknownDeviceError, ZPowerGraphError


class LivenessState(StrEnum):
    FRESH = "fresh"
    STALE = "stale"


class LivenessTracker:
    """Last-seen timestamps for the tracked device set.

    The device set is fixed by :meth:`initialize`; names outside it never
    gain an entry.  Staleness is detected lazily by polling
    :meth:`stale_devices`, there is no timer.
    """

    def __init__(self) -> None:
        self._last_seen: dict[str, int] = {}
        self._initialized = False

    def initialize(self, device_names: Iterable[str], now: int) -> None:
        """Create one entry per name with ``last_seen = now``.

        Must be called exactly once, before the ingestion loop starts.
        """
        if self._initialized:
            raise ZPowerGraphError("LivenessTracker is already initialized")
        # Sorted so iteration order does not depend on the caller's set ordering.
        for name in sorted(set(device_names)):
            self._last_seen[name] = now
        self._initialized = True

    def touch(self, device_name: str, now: int) -> None:
        """Mark *device_name* as seen at *now*.

        Raises
        ------
        UnknownDeviceError
            When *device_name* is not tracked.
        """
        if device_name not in self._last_seen:
            raise UnknownDeviceError(device_name)
        self._last_seen[device_name] = now

    def stale_devices(self, now: int, threshold: float) -> list[str]:
        """Return every device with ``now - last_seen > threshold``.

        Does not update ``last_seen``; callers touch a device after
        backfilling it.
        """
        return [name for name, seen in self._last_seen.items() if now - seen > threshold]

    def state(self, device_name: str, now: int, threshold: float) -> LivenessState:
        if now - self.last_seen(device_name) > threshold:
            return LivenessState.STALE
        return LivenessState.FRESH

    def last_seen(self, device_name: str) -> int:
        try:
            return self._last_seen[device_name]
        except KeyError:
            raise UnknownDeviceError(device_name) from None

    @property
    def devices(self) -> tuple[str, ...]:
        return tuple(self._last_seen)

    def __contains__(self, device_name: object) -> bool:
        return device_name in self._last_seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._last_seen)

    def __len__(self) -> int:
        return len(self._last_seen)
