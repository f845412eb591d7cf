"""Accuracy-weighted refinement of the final estimate."""

from __future__ import annotations

import heapq
import logging
import math
from collections.abc import Iterable

from pygeofix._normalize import is_finite_number
from pygeofix.config import StabilizerConfig
from pygeofix.models.location import RefinedLocation
from pygeofix.models.reading import RawReading

_logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _has_finite_position(reading: RawReading) -> bool:
    return is_finite_number(reading.lat) and is_finite_number(reading.lng)


def _accuracy_key(item: tuple[int, RawReading]) -> tuple[float, int, int]:
    index, reading = item
    acc = reading.accuracy_meters
    # NaN sorts last; ties go to the earliest fix, then arrival order.
    return (acc if not math.isnan(acc) else math.inf, reading.timestamp_ms, index)


class RefinementEngine:
    """Combine the most accurate readings into one :class:`RefinedLocation`.

    Pure: the same history always yields the same result and the history is
    never mutated.  Degenerate inputs resolve through a fallback chain
    instead of raising.
    """

    def __init__(self, config: StabilizerConfig) -> None:
        self._sample_size = config.refinement_sample_size

    def select(self, history: Iterable[RawReading]) -> list[RawReading]:
        """Up to ``refinement_sample_size`` readings, most accurate first."""
        picked = heapq.nsmallest(self._sample_size, enumerate(history), key=_accuracy_key)
        return [reading for _, reading in picked]

    def compute_refined(
        self,
        history: Iterable[RawReading],
        best: RawReading | None = None,
    ) -> RefinedLocation:
        readings = list(history)
        selected = self.select(readings)

        top: RawReading | None = None
        total_lat = total_lng = total_acc = weight_sum = 0.0
        for reading in selected:
            acc = reading.accuracy_meters
            if not is_finite_number(acc) or acc <= 0:
                continue
            if top is None:
                top = reading
            weight = 1.0 / acc
            total_lat += reading.lat * weight
            total_lng += reading.lng * weight
            total_acc += acc * weight
            weight_sum += weight

        if top is not None and weight_sum > 0:
            lat = total_lat / weight_sum
            lng = total_lng / weight_sum
            acc = total_acc / weight_sum
            if all(math.isfinite(v) for v in (lat, lng, acc)):
                return RefinedLocation(
                    lat=lat,
                    lng=lng,
                    accuracy_meters=_round_half_up(acc),
                    altitude=top.altitude,
                    altitude_accuracy=top.altitude_accuracy,
                    speed_mps=top.speed_mps,
                    heading_deg=top.heading_deg,
                    timestamp_ms=top.timestamp_ms,
                    sample_count=len(selected),
                )

        _logger.debug(
            "Weighted refinement degenerate (samples=%d, weight=%s); using fallback", len(selected), weight_sum
        )
        return self._fallback(readings, best)

    def _fallback(self, readings: list[RawReading], best: RawReading | None) -> RefinedLocation:
        candidates = [r for r in readings if _has_finite_position(r)]
        if candidates:
            _, top = min(enumerate(candidates), key=_accuracy_key)
            return RefinedLocation.from_reading(top)
        if best is not None and _has_finite_position(best):
            return RefinedLocation.from_reading(best)
        return RefinedLocation.placeholder()
