from __future__ import annotations

import json
import runpy
import sys
from pathlib import Path

import pytest

from pygeofix.config import StabilizerConfig
from pygeofix.models.events import ErrorEvent, EventKind, LocationStableEvent
from pygeofix.models.state import StabilizationState
from pygeofix.replay import CaptureFormatError, parse_capture, replay

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "replay_readings.py"


def _line(lat: float, acc: float, ts: int) -> str:
    return json.dumps({"coords": {"latitude": lat, "longitude": 106.8, "accuracy": acc}, "timestamp": ts})


class TestParseCapture:
    def test_offsets_from_first_timestamp(self) -> None:
        lines = [_line(-6.2, 50, 1_000_000), "", "# comment", _line(-6.2, 20, 1_002_500)]

        entries = parse_capture(lines)

        assert [e.at_ms for e in entries] == [0, 2500]
        assert entries[1].reading is not None
        assert entries[1].reading.accuracy_meters == 20

    def test_explicit_offsets_and_errors(self) -> None:
        lines = [
            json.dumps({"lat": -6.2, "lng": 106.8, "acc": 30, "at_ms": 100}),
            json.dumps({"error": {"code": 1}, "at_ms": 400}),
            json.dumps({"error": {"code": 3}}),
        ]

        entries = parse_capture(lines)

        assert [e.at_ms for e in entries] == [100, 400, 400]
        assert entries[1].failure is not None
        assert entries[1].failure.message == "Location permission denied"

    def test_offsets_never_go_backwards(self) -> None:
        entries = parse_capture([_line(-6.2, 50, 5000), _line(-6.2, 40, 4000)])
        assert [e.at_ms for e in entries] == [0, 0]

    @pytest.mark.parametrize(
        "bad",
        [
            "{not json",
            "[1, 2]",
            '{"error": 3}',
            '{"coords": {"accuracy": 5}, "timestamp": 0}',
            '{"error": {"message": 5}}',
        ],
    )
    def test_malformed_lines(self, bad: str) -> None:
        with pytest.raises(CaptureFormatError) as exc_info:
            parse_capture([_line(-6.2, 50, 0), bad])
        assert exc_info.value.line_no == 2


def test_replay_settles_on_stable_location() -> None:
    lines = [_line(-6.2, acc, i * 1000) for i, acc in enumerate([200, 150, 100, 40, 20])]

    events = replay(parse_capture(lines))

    stable = [e for e in events if isinstance(e, LocationStableEvent)]
    assert len(stable) == 1
    assert stable[0].location.lat == pytest.approx(-6.2)
    assert events[0].kind == EventKind.STATE_CHANGE
    assert events[0].state == StabilizationState.STARTING


def test_replay_without_drain_stops_at_last_entry() -> None:
    config = StabilizerConfig()
    events = replay(parse_capture([_line(-6.2, 15, 0)]), config, drain=False)

    assert not any(isinstance(e, LocationStableEvent) for e in events)
    assert events[-1].kind == EventKind.STATE_CHANGE
    assert events[-1].state == StabilizationState.STABILIZING


def test_replay_reports_sensor_errors() -> None:
    events = replay(parse_capture([json.dumps({"error": {"code": 2}})]))

    errors = [e for e in events if isinstance(e, ErrorEvent)]
    assert [(e.code, e.message) for e in errors] == [(2, "Location data unavailable")]


def test_cli_reports_invalid_reading_with_line_number(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    capture = tmp_path / "capture.jsonl"
    capture.write_text('{"coords": {"accuracy": 5}, "timestamp": 0}\n', encoding="utf-8")
    cli = runpy.run_path(str(SCRIPT), run_name="replay_readings")
    monkeypatch.setattr(sys, "argv", ["replay_readings.py", str(capture)])

    assert cli["main"]() == 2
    assert capsys.readouterr().err.startswith("error: line 1: invalid reading")
