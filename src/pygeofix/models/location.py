"""Refined (stabilized) location model."""

from __future__ import annotations

from typing import Any

from pygeofix._geo import format_coordinate
from pygeofix.models._base import GeofixBaseModel
from pygeofix.models.reading import RawReading


class RefinedLocation(GeofixBaseModel):
    """Final position estimate produced once per stabilization.

    ``lat``/``lng``/``accuracy_meters`` are accuracy-weighted means of the
    best readings; the remaining fields are copied from the single most
    accurate reading, never averaged.
    """

    lat: float
    lng: float
    accuracy_meters: float
    altitude: float | None = None
    altitude_accuracy: float | None = None
    speed_mps: float | None = None
    heading_deg: float | None = None
    timestamp_ms: int | None = None
    sample_count: int = 0

    @classmethod
    def from_reading(cls, reading: RawReading) -> RefinedLocation:
        """Degenerate refined value carrying a single reading."""
        return cls(
            lat=reading.lat,
            lng=reading.lng,
            accuracy_meters=reading.accuracy_meters,
            altitude=reading.altitude,
            altitude_accuracy=reading.altitude_accuracy,
            speed_mps=reading.speed_mps,
            heading_deg=reading.heading_deg,
            timestamp_ms=reading.timestamp_ms,
            sample_count=1,
        )

    @classmethod
    def placeholder(cls) -> RefinedLocation:
        """Zero-valued location used when nothing better exists."""
        return cls(lat=0.0, lng=0.0, accuracy_meters=0.0)

    def to_external(self, precision: int = 6) -> dict[str, Any]:
        """Shape used when embedding the location into an artifact.

        Latitude and longitude are fixed-precision strings.
        """
        return {
            "lat": format_coordinate(self.lat, precision),
            "lng": format_coordinate(self.lng, precision),
            "acc": self.accuracy_meters,
            "altitude": self.altitude,
            "altitudeAccuracy": self.altitude_accuracy,
            "speed": self.speed_mps,
            "heading": self.heading_deg,
        }
