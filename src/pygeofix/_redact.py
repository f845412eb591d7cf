"""Helpers for privacy-aware debug logging.

Readings carry precise coordinates of the device owner.  DEBUG logs only
need to show roughly where the fix is, so coordinates are coarsened before
they are emitted.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_COORDINATE_KEYS: frozenset[str] = frozenset({"lat", "lng", "lon", "latitude", "longitude"})

# ~110 m at the equator.
DEFAULT_LOG_DECIMALS = 3


def _coarsen(value: Any, decimals: int) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if not math.isfinite(value):
        return value
    return round(float(value), decimals)


def redact_for_log(value: Any, *, decimals: int = DEFAULT_LOG_DECIMALS, _depth: int = 0) -> Any:
    """Return a copy of *value* with coordinates coarsened for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, BaseModel):
        value = value.model_dump()

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _COORDINATE_KEYS:
                redacted[key] = _coarsen(v, decimals)
            else:
                redacted[key] = redact_for_log(v, decimals=decimals, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(v, decimals=decimals, _depth=_depth + 1) for v in value]

    return repr(value)
