"""Credential masking for debug logs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SECRET_KEYS = frozenset({"password"})


def redact_for_log(values: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *values* with any set password masked.

    Used on ``dataclasses.asdict`` of the config and the MQTT settings.  An
    unset password stays ``None`` so a missing credential is still visible.
    """
    return {key: "<redacted>" if key in _SECRET_KEYS and value is not None else value for key, value in values.items()}
