"""pygeofix - position acquisition and stabilization engine."""

from importlib.metadata import PackageNotFoundError, version

from pygeofix.config import StabilizerConfig
from pygeofix.exceptions import GeofixConfigError, GeofixError, GeofixStateError
from pygeofix.models import (
    AcquisitionRequest,
    EngineEvent,
    ErrorEvent,
    EventKind,
    LocationStableEvent,
    LocationUpdateEvent,
    RawReading,
    RefinedLocation,
    SensorFailure,
    StabilizationState,
    StateChangeEvent,
)
from pygeofix.publisher import EventBus, Publisher
from pygeofix.service import LocationService
from pygeofix.source import PositionSource
from pygeofix.stabilization import (
    BestEstimateTracker,
    ConsistencyEvaluator,
    ReadingValidator,
    RefinementEngine,
    StabilizationStateMachine,
    is_better,
)

try:
    __version__ = version("pygeofix")
except PackageNotFoundError:
    __version__ = "0+local"

__all__ = [
    "__version__",
    "AcquisitionRequest",
    "BestEstimateTracker",
    "ConsistencyEvaluator",
    "EngineEvent",
    "ErrorEvent",
    "EventBus",
    "EventKind",
    "GeofixConfigError",
    "GeofixError",
    "GeofixStateError",
    "LocationService",
    "LocationStableEvent",
    "LocationUpdateEvent",
    "PositionSource",
    "Publisher",
    "RawReading",
    "ReadingValidator",
    "RefinedLocation",
    "RefinementEngine",
    "SensorFailure",
    "StabilizationState",
    "StabilizationStateMachine",
    "StateChangeEvent",
    "StabilizerConfig",
    "is_better",
]
