"""Events published by the stabilization engine.

The set is closed: consumers can match on ``kind`` (or on the class) and
rely on every event being one of the four types below.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import Field

from pygeofix.models._base import GeofixBaseModel
from pygeofix.models.location import RefinedLocation
from pygeofix.models.reading import RawReading
from pygeofix.models.state import StabilizationState


class EventKind(StrEnum):
    STATE_CHANGE = "stateChange"
    LOCATION_UPDATE = "locationUpdate"
    LOCATION_STABLE = "locationStable"
    ERROR = "error"


class StateChangeEvent(GeofixBaseModel):
    kind: Literal["stateChange"] = "stateChange"
    generation: int = 0
    state: StabilizationState
    previous: StabilizationState | None = None
    location: RawReading | None = Field(default=None, description="Best estimate at the time of the change")


class LocationUpdateEvent(GeofixBaseModel):
    kind: Literal["locationUpdate"] = "locationUpdate"
    generation: int = 0
    location: RawReading
    forced: bool = Field(default=False, description="Published by request_refresh() rather than a new best")


class LocationStableEvent(GeofixBaseModel):
    kind: Literal["locationStable"] = "locationStable"
    generation: int = 0
    location: RefinedLocation


class ErrorEvent(GeofixBaseModel):
    kind: Literal["error"] = "error"
    generation: int = 0
    code: int
    message: str


EngineEvent = Annotated[
    StateChangeEvent | LocationUpdateEvent | LocationStableEvent | ErrorEvent,
    Field(discriminator="kind"),
]
"""Tagged union of every event the engine publishes."""
