"""Bounded reading history and best-so-far estimate."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from pygeofix._redact import redact_for_log
from pygeofix.config import StabilizerConfig
from pygeofix.models.reading import RawReading
from pygeofix.stabilization.policy import is_better
from pygeofix.stabilization.validator import ReadingValidator

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestResult:
    """Outcome of :meth:`BestEstimateTracker.ingest`."""

    accepted: bool
    became_best: bool


_REJECTED = IngestResult(accepted=False, became_best=False)


class BestEstimateTracker:
    """Own the reading history and the current best estimate.

    Invalid readings are dropped without touching any state.  Valid ones are
    appended to a FIFO bounded by ``position_history_size`` and compared
    against the best estimate with :func:`is_better`.
    """

    def __init__(self, config: StabilizerConfig, *, validator: ReadingValidator | None = None) -> None:
        self._config = config
        self._validator = validator or ReadingValidator(config)
        self._history: deque[RawReading] = deque(maxlen=config.position_history_size)
        self._best: RawReading | None = None
        self._invalid_streak = 0

    @property
    def history(self) -> tuple[RawReading, ...]:
        """Snapshot of the retained readings, oldest first."""
        return tuple(self._history)

    @property
    def best(self) -> RawReading | None:
        return self._best

    @property
    def invalid_streak(self) -> int:
        return self._invalid_streak

    def __len__(self) -> int:
        return len(self._history)

    def reset(self) -> None:
        self._history.clear()
        self._best = None
        self._invalid_streak = 0

    def ingest(self, reading: RawReading, *, fast: bool = False) -> IngestResult:
        reason = self._validator.explain(reading)
        if reason is not None:
            self._invalid_streak += 1
            _logger.debug("Dropping reading (%s): %s", reason, redact_for_log(reading))
            if self._invalid_streak == self._config.max_invalid_readings_in_row:
                _logger.warning("%d invalid readings in a row from the position source", self._invalid_streak)
            return _REJECTED

        self._invalid_streak = 0
        self._history.append(reading)

        if not is_better(reading, self._best, fast=fast, config=self._config):
            return IngestResult(accepted=True, became_best=False)

        self._best = reading
        return IngestResult(accepted=True, became_best=True)
