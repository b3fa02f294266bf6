from __future__ import annotations

import pytest

from zpowergraph.exceptions import UnknownDeviceError, ZPowerGraphError
from zpowergraph.state.liveness import LivenessState, LivenessTracker

T = 1_700_000_000


def _tracker(*names: str, now: int = T) -> LivenessTracker:
    tracker = LivenessTracker()
    tracker.initialize(set(names), now)
    return tracker


def test_initialize_creates_one_entry_per_device() -> None:
    tracker = _tracker("A", "B")

    assert len(tracker) == 2
    assert "A" in tracker
    assert "B" in tracker
    assert tracker.last_seen("A") == T
    assert tracker.last_seen("B") == T


def test_initialize_twice_rejected() -> None:
    tracker = _tracker("A")
    with pytest.raises(ZPowerGraphError):
        tracker.initialize({"B"}, T)
    assert "B" not in tracker


def test_stale_devices_after_threshold() -> None:
    tracker = _tracker("A", "B")

    assert sorted(tracker.stale_devices(T + 31, threshold=30)) == ["A", "B"]
    assert tracker.stale_devices(T + 29, threshold=30) == []


def test_threshold_is_strict() -> None:
    tracker = _tracker("A")
    assert tracker.stale_devices(T + 30, threshold=30) == []
    assert tracker.stale_devices(T + 31, threshold=30) == ["A"]


def test_stale_devices_does_not_mutate() -> None:
    tracker = _tracker("A")
    tracker.stale_devices(T + 100, threshold=30)
    assert tracker.last_seen("A") == T


def test_stale_devices_order_is_deterministic() -> None:
    tracker = _tracker("c", "a", "b")
    first = tracker.stale_devices(T + 31, threshold=30)
    assert first == tracker.stale_devices(T + 31, threshold=30)
    assert first == ["a", "b", "c"]


def test_touch_resets_staleness() -> None:
    tracker = _tracker("A", "B")
    tracker.touch("A", T + 31)

    assert tracker.stale_devices(T + 32, threshold=30) == ["B"]
    assert tracker.last_seen("A") == T + 31


def test_touch_unknown_device() -> None:
    tracker = _tracker("A")
    with pytest.raises(UnknownDeviceError) as excinfo:
        tracker.touch("intruder", T)

    assert excinfo.value.friendly_name == "intruder"
    assert "intruder" not in tracker
    assert len(tracker) == 1


def test_last_seen_unknown_device() -> None:
    with pytest.raises(UnknownDeviceError):
        _tracker("A").last_seen("B")


def test_state_transitions() -> None:
    tracker = _tracker("A")

    assert tracker.state("A", T + 10, threshold=30) is LivenessState.FRESH
    assert tracker.state("A", T + 31, threshold=30) is LivenessState.STALE

    tracker.touch("A", T + 31)
    assert tracker.state("A", T + 32, threshold=30) is LivenessState.FRESH


def test_devices_and_iteration() -> None:
    tracker = _tracker("B", "A")
    assert tracker.devices == ("A", "B")
    assert list(tracker) == ["A", "B"]
