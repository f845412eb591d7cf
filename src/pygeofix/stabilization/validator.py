"""Acceptance filter for raw readings."""

from __future__ import annotations

from pygeofix._constants import LAT_LIMIT, LNG_LIMIT
from pygeofix._normalize import is_finite_number
from pygeofix.config import StabilizerConfig
from pygeofix.models.reading import RawReading


class ReadingValidator:
    """Decide whether a raw reading is usable at all.

    A reading is rejected when its coordinates are not finite or out of
    range, or when its accuracy is not positive or coarser than
    ``max_reasonable_accuracy``.  Rejection is silent; it is not an error.
    """

    def __init__(self, config: StabilizerConfig) -> None:
        self._max_accuracy = config.max_reasonable_accuracy

    def explain(self, reading: RawReading) -> str | None:
        """Return the rejection reason, or ``None`` when *reading* is valid."""
        if not is_finite_number(reading.lat) or not is_finite_number(reading.lng):
            return "non-finite coordinates"
        if abs(reading.lat) > LAT_LIMIT or abs(reading.lng) > LNG_LIMIT:
            return "coordinates out of range"
        acc = reading.accuracy_meters
        if not is_finite_number(acc):
            return "non-finite accuracy"
        if acc <= 0:
            return "non-positive accuracy"
        if acc > self._max_accuracy:
            return f"accuracy coarser than {self._max_accuracy:g} m"
        return None

    def is_valid(self, reading: RawReading) -> bool:
        return self.explain(reading) is None
