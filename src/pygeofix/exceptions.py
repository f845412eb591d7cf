"""Custom exception hierarchy for pygeofix."""

from __future__ import annotations


class GeofixError(Exception):
    """Base exception for all pygeofix errors."""


class GeofixConfigError(GeofixError):
    """Invalid or inconsistent stabilizer configuration."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class GeofixStateError(GeofixError):
    """Engine or service used in a way its lifecycle does not allow.

    Raised only for caller mistakes (for example feeding readings from a
    worker thread before the service is bound to an event loop).  Normal
    sensor input never raises.
    """
