"""Shared fakes for the pygeofix test-suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pygeofix.models.events import EngineEvent, EventKind, StateChangeEvent
from pygeofix.models.reading import RawReading
from pygeofix.models.sensor import AcquisitionRequest
from pygeofix.models.state import StabilizationState
from pygeofix.stabilization.timers import ManualScheduler

__all__ = ["BASE_LAT", "BASE_LNG", "FakeSource", "ManualScheduler", "Recorder", "make_reading"]

BASE_LAT = -6.2
BASE_LNG = 106.8


def make_reading(
    acc: float = 10.0,
    *,
    lat: float = BASE_LAT,
    lng: float = BASE_LNG,
    ts: int = 0,
    **extra: Any,
) -> RawReading:
    return RawReading(lat=lat, lng=lng, accuracy_meters=acc, timestamp_ms=ts, **extra)


@dataclass
class FakeSource:
    requests: list[AcquisitionRequest] = field(default_factory=list)
    stops: int = 0

    def start_acquisition(self, request: AcquisitionRequest) -> None:
        self.requests.append(request)

    def stop_acquisition(self) -> None:
        self.stops += 1

    @property
    def generation(self) -> int:
        return self.requests[-1].generation


@dataclass
class Recorder:
    events: list[EngineEvent] = field(default_factory=list)

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> list[EngineEvent]:
        return [e for e in self.events if e.kind == kind]

    def states(self) -> list[StabilizationState]:
        return [e.state for e in self.events if isinstance(e, StateChangeEvent)]

    def clear(self) -> None:
        self.events.clear()
