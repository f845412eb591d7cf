from __future__ import annotations

import logging
import math

import pytest
from helpers import make_reading

from pygeofix.config import StabilizerConfig
from pygeofix.stabilization.tracker import BestEstimateTracker, IngestResult


@pytest.fixture
def tracker() -> BestEstimateTracker:
    return BestEstimateTracker(StabilizerConfig(position_history_size=4))


def test_first_valid_reading_becomes_best(tracker: BestEstimateTracker) -> None:
    result = tracker.ingest(make_reading(50))

    assert result == IngestResult(accepted=True, became_best=True)
    assert tracker.best is not None and tracker.best.accuracy_meters == 50


@pytest.mark.parametrize(
    "reading",
    [
        make_reading(0),
        make_reading(-5),
        make_reading(1001),
        make_reading(math.nan),
        make_reading(10, lat=math.nan),
        make_reading(10, lng=math.inf),
        make_reading(10, lat=91.0),
        make_reading(10, lng=-180.5),
    ],
)
def test_invalid_reading_does_not_mutate_state(tracker: BestEstimateTracker, reading) -> None:
    tracker.ingest(make_reading(40))
    before = (tracker.history, tracker.best)

    result = tracker.ingest(reading)

    assert result == IngestResult(accepted=False, became_best=False)
    assert (tracker.history, tracker.best) == before


def test_history_is_bounded_fifo(tracker: BestEstimateTracker) -> None:
    for ts in range(10):
        tracker.ingest(make_reading(100, ts=ts))
        assert len(tracker) <= 4

    assert [r.timestamp_ms for r in tracker.history] == [6, 7, 8, 9]


def test_worse_reading_is_kept_in_history_but_not_best(tracker: BestEstimateTracker) -> None:
    tracker.ingest(make_reading(20))
    result = tracker.ingest(make_reading(80))

    assert result == IngestResult(accepted=True, became_best=False)
    assert len(tracker) == 2
    assert tracker.best is not None and tracker.best.accuracy_meters == 20


def test_best_accuracy_never_increases(tracker: BestEstimateTracker) -> None:
    last = math.inf
    for acc in (300, 120, 400, 119, 90, 95, 30, 31, 12, 900):
        tracker.ingest(make_reading(acc))
        assert tracker.best is not None
        assert tracker.best.accuracy_meters <= last
        last = tracker.best.accuracy_meters


def test_fast_flag_selects_fast_thresholds(tracker: BestEstimateTracker) -> None:
    tracker.ingest(make_reading(100))

    assert not tracker.ingest(make_reading(96), fast=True).became_best
    assert tracker.ingest(make_reading(95), fast=False).became_best


def test_reset_clears_everything(tracker: BestEstimateTracker) -> None:
    tracker.ingest(make_reading(40))
    tracker.ingest(make_reading(0))
    tracker.reset()

    assert tracker.history == ()
    assert tracker.best is None
    assert tracker.invalid_streak == 0


def test_invalid_streak_warns_once(caplog: pytest.LogCaptureFixture) -> None:
    tracker = BestEstimateTracker(StabilizerConfig(max_invalid_readings_in_row=3))

    with caplog.at_level(logging.WARNING, logger="pygeofix.stabilization.tracker"):
        for _ in range(6):
            tracker.ingest(make_reading(-1))

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert tracker.invalid_streak == 6

    tracker.ingest(make_reading(10))
    assert tracker.invalid_streak == 0
