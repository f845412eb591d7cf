"""Distance helpers used by the consistency check."""

from __future__ import annotations

import math

from pygeofix._constants import EARTH_RADIUS_M

DEFAULT_FAST_DISTANCE_LIMIT_DEG = 0.1


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres.

    Returns ``inf`` when any coordinate is NaN so callers never treat a
    malformed point as close.
    """
    if any(math.isnan(v) for v in (lat1, lng1, lat2, lng2)):
        return math.inf

    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = math.sin(d_lat / 2) ** 2 + (
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def fast_distance_m(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    *,
    max_degrees: float = DEFAULT_FAST_DISTANCE_LIMIT_DEG,
) -> float:
    """Equirectangular distance in metres for short hops.

    Falls back to :func:`haversine_m` when either coordinate delta exceeds
    *max_degrees*; the planar approximation is only trusted below that.
    """
    if any(math.isnan(v) for v in (lat1, lng1, lat2, lng2)):
        return math.inf

    if abs(lat2 - lat1) > max_degrees or abs(lng2 - lng1) > max_degrees:
        return haversine_m(lat1, lng1, lat2, lng2)

    avg_lat = math.radians((lat1 + lat2) / 2)
    d_lat = math.radians(lat2 - lat1)
    x = math.radians(lng2 - lng1) * math.cos(avg_lat)
    return EARTH_RADIUS_M * math.hypot(x, d_lat)


def format_coordinate(value: float | None, precision: int = 6) -> str:
    """Render a coordinate with fixed decimals; non-numbers render as zero."""
    if value is None or not isinstance(value, (int, float)) or not math.isfinite(value):
        return f"{0.0:.{precision}f}"
    return f"{value:.{precision}f}"
