"""Stabilization state machine.

Root driver of the engine: it receives readings, sensor failures and
control calls, delegates validation/tracking/consistency, owns the timers
and publishes events.

Every input is processed as one job on a single queue.  A call made while
a job is running (for example from inside an event subscriber) is queued
and executed after the current transition has completed, so the machine
is never re-entered mid-transition.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from pygeofix._redact import redact_for_log
from pygeofix.config import StabilizerConfig
from pygeofix.models.events import (
    EngineEvent,
    ErrorEvent,
    LocationStableEvent,
    LocationUpdateEvent,
    StateChangeEvent,
)
from pygeofix.models.location import RefinedLocation
from pygeofix.models.reading import RawReading
from pygeofix.models.sensor import AcquisitionRequest, SensorFailure
from pygeofix.models.state import StabilizationState
from pygeofix.publisher import EventBus, Publisher
from pygeofix.source import PositionSource
from pygeofix.stabilization.consistency import ConsistencyEvaluator
from pygeofix.stabilization.refinement import RefinementEngine
from pygeofix.stabilization.timers import AsyncioScheduler, Scheduler, TimerPurpose, TimerSlots
from pygeofix.stabilization.tracker import BestEstimateTracker

_logger = logging.getLogger(__name__)

State = StabilizationState


class StabilizationStateMachine:
    """Turn a noisy reading stream into one stabilized location per session.

    Usage::

        machine = StabilizationStateMachine(config, publisher=bus, source=gps)
        machine.start()
        # gps calls machine.on_reading(...) / machine.on_error(...)
    """

    def __init__(
        self,
        config: StabilizerConfig,
        *,
        publisher: Publisher | None = None,
        source: PositionSource | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config
        self._publisher: Publisher = publisher if publisher is not None else EventBus()
        self._source = source
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._timers = TimerSlots(self._scheduler)
        self._tracker = BestEstimateTracker(config)
        self._consistency = ConsistencyEvaluator(config, clock=lambda: self._scheduler.time() * 1000.0)
        self._refinement = RefinementEngine(config)

        self._state = State.IDLE
        self._generation = 0
        self._last_refined: RefinedLocation | None = None

        self._jobs: deque[Callable[[], None]] = deque()
        self._busy = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> StabilizerConfig:
        return self._config

    @property
    def publisher(self) -> Publisher:
        return self._publisher

    @property
    def state(self) -> StabilizationState:
        return self._state

    @property
    def generation(self) -> int:
        """Session counter, incremented on every entry into STARTING."""
        return self._generation

    @property
    def best(self) -> RawReading | None:
        return self._tracker.best

    @property
    def history(self) -> tuple[RawReading, ...]:
        return self._tracker.history

    @property
    def last_refined(self) -> RefinedLocation | None:
        """Location published by the most recent stabilization, if any."""
        return self._last_refined

    def timer_armed(self, purpose: TimerPurpose) -> bool:
        return self._timers.is_armed(purpose)

    # ------------------------------------------------------------------
    # Control calls
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin a new acquisition session from any state."""
        self._submit(lambda: self._transition(State.STARTING))

    def pause(self) -> None:
        """Stop acquisition and return to IDLE, keeping nothing armed."""
        self._submit(self._do_pause)

    stop = pause

    def request_refresh(self) -> RawReading | None:
        """Publish the current best estimate right away.

        Meant for time-sensitive consumers (e.g. an imminent capture) that
        cannot wait for stabilization.  The state is left untouched.
        Returns the best estimate, or ``None`` when nothing is known yet.
        """
        best = self._tracker.best
        if best is not None:
            event = LocationUpdateEvent(generation=self._generation, location=best, forced=True)
            self._submit(lambda: self._publish(event))
        return best

    def compute_refined(self) -> RefinedLocation:
        """Refined estimate over the current history, without side effects."""
        return self._refinement.compute_refined(self._tracker.history, self._tracker.best)

    # ------------------------------------------------------------------
    # Inbound from the position source
    # ------------------------------------------------------------------

    def on_reading(self, reading: RawReading, *, generation: int | None = None) -> None:
        """Feed one sample.  Invalid samples are dropped silently."""
        self._submit(lambda: self._handle_reading(reading, generation))

    def on_error(self, failure: SensorFailure, *, generation: int | None = None) -> None:
        """Report a sensor failure; the machine moves to ERROR."""
        self._submit(lambda: self._handle_error(failure, generation))

    # ------------------------------------------------------------------
    # Job queue
    # ------------------------------------------------------------------

    def _submit(self, job: Callable[[], None]) -> None:
        self._jobs.append(job)
        if self._busy:
            return
        self._busy = True
        try:
            while self._jobs:
                self._jobs.popleft()()
        except Exception:
            self._jobs.clear()
            raise
        finally:
            self._busy = False

    def _publish(self, event: EngineEvent) -> None:
        self._publisher.publish(event)

    def _is_stale(self, generation: int | None) -> bool:
        return generation is not None and generation != self._generation

    # ------------------------------------------------------------------
    # Handlers (run inside a job)
    # ------------------------------------------------------------------

    def _handle_reading(self, reading: RawReading, generation: int | None) -> None:
        if self._is_stale(generation):
            _logger.debug("Ignoring reading from stale session %s (current %s)", generation, self._generation)
            return
        if not self._state.accepts_readings:
            _logger.debug("Ignoring reading in state %s", self._state)
            return

        fast = self._state == State.ACQUIRING_FAST
        result = self._tracker.ingest(reading, fast=fast)
        if not result.accepted:
            return

        best = self._tracker.best
        assert best is not None  # noqa: S101
        if result.became_best:
            _logger.debug("New best estimate %s", redact_for_log(best))
            self._publish(LocationUpdateEvent(generation=self._generation, location=best))

        state = self._state
        if state == State.STARTING:
            self._transition(State.ACQUIRING_FAST)
            self._evaluate()
        elif state.is_acquiring:
            self._evaluate()
        elif state == State.STABILIZING:
            if result.became_best:
                # Re-entering restarts the stabilization timer.
                self._transition(State.STABILIZING)
        elif state == State.STABLE:
            if result.became_best:
                self._transition(State.ACQUIRING_STABLE)
                self._evaluate()

    def _handle_error(self, failure: SensorFailure, generation: int | None) -> None:
        if self._is_stale(generation):
            _logger.debug("Ignoring sensor failure from stale session %s", generation)
            return
        _logger.debug("Sensor failure code=%s (%s): %s", failure.code, failure.name, failure.message)
        self._transition(State.ERROR, failure=failure)

    def _do_pause(self) -> None:
        if self._state == State.IDLE:
            return
        if self._source is not None:
            self._source.stop_acquisition()
        self._transition(State.IDLE)

    def _evaluate(self) -> None:
        best = self._tracker.best
        if best is None or best.accuracy_meters > self._config.min_accuracy_threshold:
            return
        if self._consistency.is_consistent(self._tracker.history):
            self._transition(State.STABLE)
        elif self._state != State.STABILIZING:
            self._transition(State.STABILIZING)

    def _on_fast_timeout(self, generation: int) -> None:
        if generation != self._generation or self._state != State.ACQUIRING_FAST:
            return
        self._transition(State.ACQUIRING_STABLE)

    def _on_stabilization_timeout(self, generation: int) -> None:
        if generation != self._generation or self._state != State.STABILIZING:
            return
        self._transition(State.STABLE)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(self, new_state: StabilizationState, *, failure: SensorFailure | None = None) -> None:
        previous = self._state
        self._state = new_state
        _logger.debug("Transition %s -> %s (generation=%d)", previous, new_state, self._generation)

        if previous == State.ACQUIRING_FAST and new_state != State.ACQUIRING_FAST:
            self._timers.cancel(TimerPurpose.FAST_ACQUISITION)

        if new_state == State.STARTING:
            self._generation += 1
            self._timers.cancel_all()
            self._tracker.reset()
            self._consistency.invalidate()
            self._last_refined = None
            self._publish_state(previous)
            if self._source is not None:
                self._source.start_acquisition(self._acquisition_request())
            return

        if new_state in (State.STABLE, State.ERROR, State.IDLE):
            self._timers.cancel_all()

        if new_state == State.STABLE:
            refined = self.compute_refined()
            self._last_refined = refined
            self._publish_state(previous)
            _logger.debug("Location stable %s", redact_for_log(refined))
            self._publish(LocationStableEvent(generation=self._generation, location=refined))
            return

        self._publish_state(previous)

        if new_state == State.ACQUIRING_FAST:
            self._arm(TimerPurpose.FAST_ACQUISITION, self._config.fast_acquisition_timeout, self._on_fast_timeout)
        elif new_state == State.STABILIZING:
            self._arm(TimerPurpose.STABILIZATION, self._config.best_location_timeout, self._on_stabilization_timeout)
        elif new_state == State.ERROR:
            failure = failure or SensorFailure()
            self._publish(ErrorEvent(generation=self._generation, code=failure.code, message=failure.message))

    def _publish_state(self, previous: StabilizationState) -> None:
        self._publish(
            StateChangeEvent(
                generation=self._generation,
                state=self._state,
                previous=previous,
                location=self._tracker.best,
            )
        )

    def _arm(self, purpose: TimerPurpose, delay: float, handler: Callable[[int], None]) -> None:
        generation = self._generation
        self._timers.arm(purpose, delay, lambda: self._submit(lambda: handler(generation)))

    def _acquisition_request(self) -> AcquisitionRequest:
        return AcquisitionRequest(
            generation=self._generation,
            high_accuracy=True,
            timeout_ms=self._config.sensor_timeout_ms,
            maximum_age_ms=0,
            distance_filter_meters=self._config.distance_filter_meters,
        )
