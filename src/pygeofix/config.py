"""Stabilizer configuration for pygeofix."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from pygeofix.exceptions import GeofixConfigError

_ENV_PREFIX = "GEOFIX_"


def _coerce_env(value: str, target: Any) -> int | float:
    """Convert an environment string to the type of the field default."""
    if isinstance(target, int) and not isinstance(target, bool):
        return int(float(value))
    return float(value)


@dataclasses.dataclass(frozen=True)
class StabilizerConfig:
    """Numeric tunables for position acquisition and stabilization.

    The engine receives one instance at construction and never reads
    process-wide defaults afterwards.

    Parameters
    ----------
    min_accuracy_threshold : float
        Accuracy (metres) at or below which the best estimate may trigger
        stabilization.
    max_reasonable_accuracy : float
        Readings coarser than this (metres) are discarded as noise.
    position_history_size : int
        Bound on retained readings.
    fast_acquisition_timeout_ms : int
        Lifetime of the fast acquisition phase before the stricter
        acceptance regime takes over.
    best_location_timeout_ms : int
        How long STABILIZING waits for a better reading before declaring
        the current best estimate stable.
    movement_threshold_meters : float
        Clustering radius around the centroid for consistency checks.
    min_consistent_positions : int
        Minimum number of clustered readings for consistency.
    consistency_window : int
        Number of most recent readings the consistency check looks at.
    consistency_debounce_ms : int
        How long a consistency verdict is reused for an unchanged window.
    max_degrees_for_fast_distance : float
        Coordinate delta (degrees) above which distances fall back from the
        equirectangular approximation to haversine.
    improvement_threshold_fast : float
        Absolute accuracy gain (metres) accepted in fast mode.
    ratio_threshold_fast : float
        Accuracy ratio accepted in fast mode.
    improvement_threshold_stable : float
        Absolute accuracy gain (metres) accepted outside fast mode.
    convergence_factor : float
        Accuracy ratio accepted outside fast mode.
    similar_accuracy_threshold : float
        Gains below this are treated as "similar accuracy" and accepted
        because the new reading is already strictly better.
    refinement_sample_size : int
        Number of most accurate readings combined into the refined estimate.
    coordinate_precision : int
        Decimal digits used when externalizing latitude/longitude.
    max_invalid_readings_in_row : int
        Consecutive invalid readings after which a warning is logged.
    sensor_timeout_ms : int
        Per-fix timeout requested from the position source.
    distance_filter_meters : float
        Minimum movement the position source should report.
    """

    min_accuracy_threshold: float = 25.0
    max_reasonable_accuracy: float = 1000.0
    position_history_size: int = 15
    fast_acquisition_timeout_ms: int = 3000
    best_location_timeout_ms: int = 12000
    movement_threshold_meters: float = 10.0
    min_consistent_positions: int = 3
    consistency_window: int = 5
    consistency_debounce_ms: int = 1000
    max_degrees_for_fast_distance: float = 0.1
    improvement_threshold_fast: float = 5.0
    ratio_threshold_fast: float = 1.2
    improvement_threshold_stable: float = 20.0
    convergence_factor: float = 1.5
    similar_accuracy_threshold: float = 10.0
    refinement_sample_size: int = 7
    coordinate_precision: int = 6
    max_invalid_readings_in_row: int = 5
    sensor_timeout_ms: int = 45000
    distance_filter_meters: float = 3.0

    def __post_init__(self) -> None:
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise GeofixConfigError(f"{field.name} must be numeric, got {value!r}", field=field.name)
            if not math.isfinite(value):
                raise GeofixConfigError(f"{field.name} must be finite, got {value!r}", field=field.name)
            if value < 0:
                raise GeofixConfigError(f"{field.name} must be non-negative, got {value!r}", field=field.name)

        positive = (
            "min_accuracy_threshold",
            "max_reasonable_accuracy",
            "position_history_size",
            "min_consistent_positions",
            "consistency_window",
            "refinement_sample_size",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise GeofixConfigError(f"{name} must be positive", field=name)

        if self.min_consistent_positions > self.consistency_window:
            raise GeofixConfigError(
                "min_consistent_positions cannot exceed consistency_window",
                field="min_consistent_positions",
            )
        if self.min_accuracy_threshold > self.max_reasonable_accuracy:
            raise GeofixConfigError(
                "min_accuracy_threshold cannot exceed max_reasonable_accuracy",
                field="min_accuracy_threshold",
            )

    @property
    def fast_acquisition_timeout(self) -> float:
        """Fast acquisition timeout in seconds."""
        return self.fast_acquisition_timeout_ms / 1000.0

    @property
    def best_location_timeout(self) -> float:
        """Stabilization timeout in seconds."""
        return self.best_location_timeout_ms / 1000.0

    def replace(self, **changes: Any) -> StabilizerConfig:
        """Return a copy with *changes* applied (validated again)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, **overrides: Any) -> StabilizerConfig:
        """Create configuration from environment variables.

        Every field can be set through ``GEOFIX_<FIELD_NAME>`` (for example
        ``GEOFIX_MIN_ACCURACY_THRESHOLD=15``).  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StabilizerConfig
            Populated configuration.

        Raises
        ------
        GeofixConfigError
            If an environment value is not numeric or fails validation.
        """
        env = os.environ
        defaults = cls()
        config_kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            if field.name in overrides:
                continue
            raw = env.get(f"{_ENV_PREFIX}{field.name.upper()}")
            if raw is None or not raw.strip():
                continue
            try:
                config_kwargs[field.name] = _coerce_env(raw.strip(), getattr(defaults, field.name))
            except ValueError as exc:
                raise GeofixConfigError(
                    f"{_ENV_PREFIX}{field.name.upper()} is not numeric: {raw!r}",
                    field=field.name,
                ) from exc

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
