"""High-level location service wrapping the stabilization engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pygeofix._constants import NOT_SUPPORTED
from pygeofix._geo import format_coordinate
from pygeofix.config import StabilizerConfig
from pygeofix.exceptions import GeofixStateError
from pygeofix.models.events import EngineEvent, ErrorEvent, LocationStableEvent, StateChangeEvent
from pygeofix.models.location import RefinedLocation
from pygeofix.models.reading import RawReading
from pygeofix.models.sensor import SensorFailure
from pygeofix.models.state import StabilizationState
from pygeofix.publisher import EventBus
from pygeofix.source import PositionSource
from pygeofix.stabilization.machine import StabilizationStateMachine
from pygeofix.stabilization.timers import AsyncioScheduler, Scheduler

_logger = logging.getLogger(__name__)


def _format_accuracy(value: float | None) -> str:
    if value is None:
        return "..."
    return f"±{value:g}m"


class LocationService:
    """Own one engine and its position source for an application session.

    Usage::

        async with LocationService(source=gps) as service:
            service.events.subscribe(on_stable, EventKind.LOCATION_STABLE)
            ...

    The service keeps the externalized form of the last stable location,
    exposes a human-readable status line, and lets worker threads feed the
    engine safely through :meth:`feed_reading_threadsafe`.
    """

    def __init__(
        self,
        config: StabilizerConfig | None = None,
        *,
        source: PositionSource | None = None,
        events: EventBus | None = None,
        scheduler: Scheduler | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config or StabilizerConfig()
        self._source = source
        self._events = events or EventBus()
        self._loop = loop
        self._machine = StabilizationStateMachine(
            self._config,
            publisher=self._events,
            source=source,
            scheduler=scheduler if scheduler is not None else AsyncioScheduler(loop),
        )
        self._watching = False
        self._location: dict[str, Any] | None = None
        self._stable: RefinedLocation | None = None
        self._last_error: ErrorEvent | None = None
        self._unsubscribe = self._events.subscribe(self._on_event)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LocationService:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def machine(self) -> StabilizationStateMachine:
        return self._machine

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def state(self) -> StabilizationState:
        return self._machine.state

    @property
    def is_watching(self) -> bool:
        return self._watching

    @property
    def location(self) -> dict[str, Any] | None:
        """Externalized form of the last stable location.

        Survives restarts: it keeps the previous fix until a new session
        publishes its own stable location.
        """
        return self._location

    @property
    def last_error(self) -> ErrorEvent | None:
        return self._last_error

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start (or restart) acquisition.

        Without a position source the failure is reported the same way the
        source would report it, as a ``NOT_SUPPORTED`` sensor error.
        """
        self._last_error = None
        if self._source is None:
            _logger.debug("No position source configured")
            self._machine.on_error(SensorFailure(code=NOT_SUPPORTED))
            return
        self._watching = True
        self._machine.start()

    def pause(self) -> None:
        if not self._watching:
            return
        self._watching = False
        self._machine.pause()

    def resume(self) -> None:
        if not self._watching:
            self.start()

    def destroy(self) -> None:
        self.pause()
        self._unsubscribe()

    def request_refresh(self) -> RawReading | None:
        return self._machine.request_refresh()

    # ------------------------------------------------------------------
    # Feeding from other threads
    # ------------------------------------------------------------------

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise GeofixStateError("Service not bound to an event loop. Use 'async with LocationService(...)'")
        return self._loop

    def feed_reading_threadsafe(self, reading: RawReading, *, generation: int | None = None) -> None:
        """Hand a reading produced on a worker thread to the engine's loop."""
        loop = self._require_loop()
        loop.call_soon_threadsafe(lambda: self._machine.on_reading(reading, generation=generation))

    def feed_error_threadsafe(self, failure: SensorFailure, *, generation: int | None = None) -> None:
        loop = self._require_loop()
        loop.call_soon_threadsafe(lambda: self._machine.on_error(failure, generation=generation))

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def status_text(self) -> str:
        """One-line status suitable for a location label."""
        state = self._machine.state
        best = self._machine.best
        best_acc = best.accuracy_meters if best is not None else None

        if state == StabilizationState.STARTING:
            return "Starting GPS..."
        if state.is_acquiring:
            return f"Searching for a stable signal ({_format_accuracy(best_acc)})"
        if state == StabilizationState.STABILIZING:
            return f"Validating location ({_format_accuracy(best_acc)})"
        if state == StabilizationState.STABLE and self._stable is not None:
            precision = self._config.coordinate_precision
            lat = format_coordinate(self._stable.lat, precision)
            lng = format_coordinate(self._stable.lng, precision)
            return f"{lat}, {lng} ({_format_accuracy(self._stable.accuracy_meters)})"
        if state == StabilizationState.ERROR and self._last_error is not None:
            return f"{self._last_error.message} (tap to retry)"
        if state == StabilizationState.IDLE:
            return "GPS paused"
        return "Unknown status"

    def _on_event(self, event: EngineEvent) -> None:
        if isinstance(event, LocationStableEvent):
            self._stable = event.location
            self._location = event.location.to_external(self._config.coordinate_precision)
        elif isinstance(event, ErrorEvent):
            self._last_error = event
        elif isinstance(event, StateChangeEvent) and event.state == StabilizationState.STARTING:
            self._stable = None
