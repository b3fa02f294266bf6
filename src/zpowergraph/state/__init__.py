"""In-memory device state."""

from zpowergraph.state.liveness import LivenessState, LivenessTracker

__all__ = ["LivenessState", "LivenessTracker"]
