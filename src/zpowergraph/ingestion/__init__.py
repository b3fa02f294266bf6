"""Ingestion layer.

Decodes MQTT payloads and drives the ingest / backfill loop.
"""

from zpowergraph.ingestion.decode import decode_reading, decode_telemetry
from zpowergraph.ingestion.loop import IngestionLoop, MessageReceived, PollTimeout, TransportFailed

__all__ = [
    "IngestionLoop",
    "MessageReceived",
    "PollTimeout",
    "TransportFailed",
    "decode_reading",
    "decode_telemetry",
]
