"""Base model shared by pygeofix value types."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GeofixBaseModel(BaseModel):
    """Immutable value object.

    ``populate_by_name`` lets callers use the Python field names even when
    a field declares camelCase validation aliases for sensor payloads.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
