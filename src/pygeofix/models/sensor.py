"""Models exchanged with the position source collaborator."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from pygeofix._constants import SENSOR_ERROR_NAMES, sensor_error_message
from pygeofix._normalize import safe_int
from pygeofix.models._base import GeofixBaseModel


class SensorFailure(GeofixBaseModel):
    """Failure reported by the position source.

    Parameters
    ----------
    code : int
        ``1`` permission denied, ``2`` position unavailable, ``3`` timeout,
        ``-1`` geolocation not supported.  Other values are kept as-is.
    message : str
        Human-readable message; filled from the code when empty.
    """

    code: int = 0
    message: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> int:
        parsed = safe_int(value)
        return 0 if parsed is None else parsed

    @model_validator(mode="after")
    def _default_message(self) -> SensorFailure:
        if not self.message.strip():
            object.__setattr__(self, "message", sensor_error_message(self.code))
        return self

    @property
    def name(self) -> str:
        return SENSOR_ERROR_NAMES.get(self.code, "UNKNOWN")


class AcquisitionRequest(GeofixBaseModel):
    """Watch parameters sent to the position source on session start.

    ``generation`` identifies the session; sources should hand it back with
    every reading so the engine can ignore callbacks from older sessions.
    """

    generation: int
    high_accuracy: bool = True
    timeout_ms: int = Field(default=45000, ge=0)
    maximum_age_ms: int = Field(default=0, ge=0)
    distance_filter_meters: float = Field(default=0.0, ge=0)
