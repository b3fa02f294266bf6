"""Base model and shared field types for zpowergraph models.

Every model inherits from :class:`PowerGraphBaseModel` which is frozen and
ignores unknown keys, so extra metadata Zigbee2MQTT adds to a payload never
breaks decoding.

Measurement fields use strict types: Zigbee2MQTT sends JSON numbers, and a
string or boolean where a number belongs marks the payload as malformed
rather than something to coerce.  ``NaN`` and infinities are rejected too;
SQLite cannot store them as measurements.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, StringConstraints

UInt16 = Annotated[StrictInt, Field(ge=0, le=65535)]
"""Unsigned 16-bit integer, as reported for ``power`` and ``voltage``."""

Measurement = Annotated[StrictFloat, Field(allow_inf_nan=False)]
"""Finite floating point measurement. JSON integers are accepted, strings are not."""

FriendlyName = Annotated[StrictStr, StringConstraints(min_length=1, pattern=r"\S")]
"""Device key, matched exactly. Must contain a non-whitespace character."""


class PowerGraphBaseModel(BaseModel):
    """Base for zpowergraph models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
