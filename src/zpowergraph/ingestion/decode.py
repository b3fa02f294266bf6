"""Telemetry payload decoding.

Turns raw MQTT payload bytes into validated models.  Every failure mode
(invalid JSON, non-object JSON, missing or mistyped fields) surfaces as a
single :class:`~zpowergraph.exceptions.DecodeError`.
"""

from __future__ import annotations

from pydantic import ValidationError

from zpowergraph.exceptions import DecodeError
from zpowergraph.models.reading import Reading
from zpowergraph.models.telemetry import TelemetryPayload


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False, include_input=False):
        location = ".".join(str(item) for item in error["loc"]) or "<payload>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def decode_telemetry(payload: bytes | bytearray | str, *, topic: str = "") -> TelemetryPayload:
    """Parse *payload* into a :class:`TelemetryPayload`.

    Raises
    ------
    DecodeError
        When the payload is not a JSON object matching the telemetry schema.
    """
    try:
        return TelemetryPayload.model_validate_json(payload)
    except ValidationError as exc:
        raise DecodeError(f"Malformed telemetry payload: {_summarize(exc)}", topic=topic) from exc


def decode_reading(payload: bytes | bytearray | str, *, timestamp: int, topic: str = "") -> Reading:
    """Parse *payload* and project it onto a :class:`Reading` at *timestamp*."""
    return decode_telemetry(payload, topic=topic).to_reading(timestamp=timestamp)
