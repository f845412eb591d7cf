"""Raw position reading model."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pygeofix._normalize import safe_float, safe_int
from pygeofix.models._base import GeofixBaseModel


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class RawReading(GeofixBaseModel):
    """One timestamped position sample as delivered by the sensor.

    Required numeric fields that are present but cannot be parsed become
    ``NaN`` instead of raising, so such a sample reaches the validator and
    is dropped there.  A payload missing ``lat``, ``lng`` or the accuracy
    still raises :class:`pydantic.ValidationError`.  Optional fields that
    cannot be parsed become ``None``.

    Parameters
    ----------
    lat : float
        Latitude in degrees.
    lng : float
        Longitude in degrees.
    accuracy_meters : float
        Radius of the confidence circle in metres; smaller is better.
    timestamp_ms : int
        Epoch milliseconds of the fix.
    altitude : float or None
        Altitude in metres.
    altitude_accuracy : float or None
        Altitude confidence in metres.
    speed_mps : float or None
        Ground speed in metres per second.
    heading_deg : float or None
        Heading in degrees clockwise from true north.
    """

    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(validation_alias=AliasChoices("lng", "lon", "longitude"))
    accuracy_meters: float = Field(
        validation_alias=AliasChoices("accuracy_meters", "accuracyMeters", "accuracy", "acc"),
    )
    timestamp_ms: int = Field(
        default_factory=_now_ms,
        validation_alias=AliasChoices("timestamp_ms", "timestampMs", "timestamp", "time"),
    )
    altitude: float | None = None
    altitude_accuracy: float | None = Field(
        default=None,
        validation_alias=AliasChoices("altitude_accuracy", "altitudeAccuracy"),
    )
    speed_mps: float | None = Field(default=None, validation_alias=AliasChoices("speed_mps", "speedMps", "speed"))
    heading_deg: float | None = Field(
        default=None,
        validation_alias=AliasChoices("heading_deg", "headingDeg", "heading", "direction"),
    )

    @model_validator(mode="before")
    @classmethod
    def _merge_coords(cls, values: Any) -> Any:
        # Geolocation API shape: {"coords": {...}, "timestamp": ...}
        if not isinstance(values, Mapping):
            return values
        nested = values.get("coords")
        merged = dict(values)
        if isinstance(nested, Mapping):
            merged.pop("coords")
            merged.update(nested)
        return merged

    @field_validator("lat", "lng", "accuracy_meters", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> float:
        parsed = safe_float(value)
        return float("nan") if parsed is None else parsed

    @field_validator("altitude", "altitude_accuracy", "speed_mps", "heading_deg", mode="before")
    @classmethod
    def _coerce_optional(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp_ms", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int:
        parsed = safe_int(value)
        return _now_ms() if parsed is None else parsed

    @classmethod
    def from_position(cls, payload: Mapping[str, Any]) -> RawReading:
        """Build a reading from a geolocation-style mapping.

        Accepts both ``{"coords": {"latitude": ..., "accuracy": ...},
        "timestamp": ...}`` and flat mappings using the field names or their
        common aliases.
        """
        return cls.model_validate(payload)
