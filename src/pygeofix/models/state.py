"""Stabilization state enum."""

from __future__ import annotations

from enum import StrEnum


class StabilizationState(StrEnum):
    IDLE = "IDLE"
    STARTING = "STARTING"
    ACQUIRING_FAST = "ACQUIRING_FAST"
    ACQUIRING_STABLE = "ACQUIRING_STABLE"
    STABILIZING = "STABILIZING"
    STABLE = "STABLE"
    ERROR = "ERROR"

    @property
    def is_acquiring(self) -> bool:
        return self in (StabilizationState.ACQUIRING_FAST, StabilizationState.ACQUIRING_STABLE)

    @property
    def accepts_readings(self) -> bool:
        """Whether incoming readings are tracked in this state."""
        return self not in (StabilizationState.IDLE, StabilizationState.ERROR)
