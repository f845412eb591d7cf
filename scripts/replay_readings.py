#!/usr/bin/env python3
"""Replay a captured GPS session through the stabilization engine.

Reads a JSON-lines capture (one geolocation payload or error per line) and
prints every event the engine publishes, on a virtual clock, so thresholds
can be tuned against real recordings without a device.

Usage
-----
::

    python scripts/replay_readings.py capture.jsonl
    GEOFIX_MIN_ACCURACY_THRESHOLD=15 python scripts/replay_readings.py capture.jsonl --json

Options::

    --json              Output events as JSON lines
    --no-drain          Stop at the last entry instead of letting timers fire
    --verbose, -v       Enable debug logging
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pygeofix import GeofixError, StabilizerConfig  # noqa: E402
from pygeofix.models.events import (  # noqa: E402
    EngineEvent,
    ErrorEvent,
    LocationStableEvent,
    LocationUpdateEvent,
    StateChangeEvent,
)
from pygeofix.replay import parse_capture, replay  # noqa: E402


def _describe(event: EngineEvent, precision: int) -> str:
    if isinstance(event, StateChangeEvent):
        return f"state    {event.previous} -> {event.state}"
    if isinstance(event, LocationUpdateEvent):
        tag = " (forced)" if event.forced else ""
        loc = event.location
        return f"update   {loc.lat:.{precision}f}, {loc.lng:.{precision}f} ±{loc.accuracy_meters:g}m{tag}"
    if isinstance(event, LocationStableEvent):
        ext = event.location.to_external(precision)
        return f"stable   {ext['lat']}, {ext['lng']} ±{ext['acc']:g}m from {event.location.sample_count} samples"
    if isinstance(event, ErrorEvent):
        return f"error    code={event.code} {event.message}"
    return repr(event)


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay a captured GPS session through pygeofix.")
    parser.add_argument("capture", help="JSON-lines capture file ('-' for stdin)")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output events as JSON lines")
    parser.add_argument("--no-drain", action="store_true", help="Do not let pending timers fire at the end")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = StabilizerConfig.from_env()
        if args.capture == "-":
            entries = parse_capture(sys.stdin)
        else:
            with Path(args.capture).open(encoding="utf-8") as fh:
                entries = parse_capture(fh)
    except (GeofixError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    events = replay(entries, config, drain=not args.no_drain)

    for event in events:
        if args.json_mode:
            print(event.model_dump_json())
        else:
            print(_describe(event, config.coordinate_precision))
    return 0


if __name__ == "__main__":
    sys.exit(main())
