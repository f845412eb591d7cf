"""Value types for pygeofix."""

from pygeofix.models.events import (
    EngineEvent,
    ErrorEvent,
    EventKind,
    LocationStableEvent,
    LocationUpdateEvent,
    StateChangeEvent,
)
from pygeofix.models.location import RefinedLocation
from pygeofix.models.reading import RawReading
from pygeofix.models.sensor import AcquisitionRequest, SensorFailure
from pygeofix.models.state import StabilizationState

__all__ = [
    "AcquisitionRequest",
    "EngineEvent",
    "ErrorEvent",
    "EventKind",
    "LocationStableEvent",
    "LocationUpdateEvent",
    "RawReading",
    "RefinedLocation",
    "SensorFailure",
    "StabilizationState",
    "StateChangeEvent",
]
