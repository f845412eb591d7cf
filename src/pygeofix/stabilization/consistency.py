"""Clustering check over the most recent readings."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pygeofix._geo import fast_distance_m
from pygeofix.config import StabilizerConfig
from pygeofix.models.reading import RawReading

_logger = logging.getLogger(__name__)

_WindowKey = tuple[tuple[float, float, float, int], ...]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True, slots=True)
class _Verdict:
    key: _WindowKey
    computed_at_ms: float
    consistent: bool


class ConsistencyEvaluator:
    """Decide whether recent readings cluster tightly around their centroid.

    The verdict for a given window of readings is reused for
    ``consistency_debounce_ms`` so bursts of identical input do not redo the
    distance maths.  The window is compared numerically, sample by sample.
    """

    def __init__(
        self,
        config: StabilizerConfig,
        *,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self._config = config
        self._clock = clock
        self._verdict: _Verdict | None = None

    def invalidate(self) -> None:
        self._verdict = None

    def is_consistent(self, history: Sequence[RawReading]) -> bool:
        minimum = self._config.min_consistent_positions
        if len(history) < minimum:
            return False

        window = list(history)[-self._config.consistency_window :]
        key: _WindowKey = tuple((r.lat, r.lng, r.accuracy_meters, r.timestamp_ms) for r in window)
        now = self._clock()

        verdict = self._verdict
        debounce = self._config.consistency_debounce_ms
        if verdict is not None and verdict.key == key and now - verdict.computed_at_ms < debounce:
            return verdict.consistent

        consistent = self._count_clustered(window) >= minimum
        self._verdict = _Verdict(key=key, computed_at_ms=now, consistent=consistent)
        return consistent

    def _count_clustered(self, window: Sequence[RawReading]) -> int:
        avg_lat = sum(r.lat for r in window) / len(window)
        avg_lng = sum(r.lng for r in window) / len(window)
        radius = self._config.movement_threshold_meters
        max_degrees = self._config.max_degrees_for_fast_distance

        count = 0
        for reading in window:
            distance = fast_distance_m(avg_lat, avg_lng, reading.lat, reading.lng, max_degrees=max_degrees)
            if distance <= radius:
                count += 1
        _logger.debug("Consistency window=%d clustered=%d radius=%.1fm", len(window), count, radius)
        return count
