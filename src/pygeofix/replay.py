"""Replay captured sensor sessions through the engine on a virtual clock."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from pygeofix._normalize import safe_int
from pygeofix.config import StabilizerConfig
from pygeofix.exceptions import GeofixError
from pygeofix.models.events import EngineEvent
from pygeofix.models.reading import RawReading
from pygeofix.models.sensor import SensorFailure
from pygeofix.publisher import EventBus
from pygeofix.stabilization.machine import StabilizationStateMachine
from pygeofix.stabilization.timers import ManualScheduler

_logger = logging.getLogger(__name__)


class CaptureFormatError(GeofixError):
    """Malformed line in a capture file."""

    def __init__(self, message: str, *, line_no: int) -> None:
        self.line_no = line_no
        super().__init__(f"line {line_no}: {message}")


@dataclass(frozen=True, slots=True)
class CaptureEntry:
    """One captured sensor callback and when it happened relative to the first."""

    at_ms: int
    reading: RawReading | None = None
    failure: SensorFailure | None = None


def parse_capture(lines: Iterable[str]) -> list[CaptureEntry]:
    """Parse JSON-lines capture data.

    Each non-blank line holds either a geolocation payload or an
    ``{"error": {"code": ..., "message": ...}}`` object.  ``at_ms`` gives the
    offset from the start of the session; without it, reading timestamps
    are used relative to the first reading, and errors reuse the previous
    offset.
    """
    entries: list[CaptureEntry] = []
    first_ts: int | None = None
    last_at = 0

    for line_no, line in enumerate(lines, start=1):
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CaptureFormatError(f"invalid JSON ({exc.msg})", line_no=line_no) from exc
        if not isinstance(obj, dict):
            raise CaptureFormatError("expected a JSON object", line_no=line_no)

        explicit_at = safe_int(obj.pop("at_ms", None))
        if "error" in obj:
            payload = obj["error"]
            if not isinstance(payload, dict):
                raise CaptureFormatError("'error' must be an object", line_no=line_no)
            try:
                failure = SensorFailure.model_validate(payload)
            except ValidationError as exc:
                message = f"invalid error payload ({exc.error_count()} errors)"
                raise CaptureFormatError(message, line_no=line_no) from exc
            at = explicit_at if explicit_at is not None else last_at
            entries.append(CaptureEntry(at_ms=max(at, last_at), failure=failure))
        else:
            try:
                reading = RawReading.from_position(obj)
            except ValidationError as exc:
                raise CaptureFormatError(f"invalid reading ({exc.error_count()} errors)", line_no=line_no) from exc
            if first_ts is None:
                first_ts = reading.timestamp_ms
            at = explicit_at if explicit_at is not None else reading.timestamp_ms - first_ts
            entries.append(CaptureEntry(at_ms=max(at, last_at), reading=reading))
        last_at = entries[-1].at_ms

    return entries


def replay(
    entries: Iterable[CaptureEntry],
    config: StabilizerConfig | None = None,
    *,
    drain: bool = True,
) -> list[EngineEvent]:
    """Feed *entries* to a fresh engine and return every published event.

    Time never goes backwards; entries out of order are delivered at the
    current virtual time.  With *drain*, pending timers are allowed to fire
    after the last entry so the session can settle.
    """
    config = config or StabilizerConfig()
    scheduler = ManualScheduler()
    bus = EventBus()
    events: list[EngineEvent] = []
    bus.subscribe(events.append)

    machine = StabilizationStateMachine(config, publisher=bus, scheduler=scheduler)
    machine.start()

    count = 0
    for entry in entries:
        if entry.at_ms > scheduler.now_ms:
            scheduler.advance_ms(entry.at_ms - scheduler.now_ms)
        if entry.reading is not None:
            machine.on_reading(entry.reading, generation=machine.generation)
        elif entry.failure is not None:
            machine.on_error(entry.failure, generation=machine.generation)
        count += 1

    if drain:
        scheduler.advance_ms(config.fast_acquisition_timeout_ms + config.best_location_timeout_ms)

    _logger.debug("Replayed %d entries, %d events, final state %s", count, len(events), machine.state)
    return events
