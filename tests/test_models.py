from __future__ import annotations

import math
import time

import pytest
from pydantic import TypeAdapter, ValidationError
from helpers import make_reading

from pygeofix.config import StabilizerConfig
from pygeofix.models.events import EngineEvent, ErrorEvent, EventKind, LocationStableEvent, StateChangeEvent
from pygeofix.models.location import RefinedLocation
from pygeofix.models.reading import RawReading
from pygeofix.models.sensor import AcquisitionRequest, SensorFailure
from pygeofix.models.state import StabilizationState
from pygeofix.stabilization.validator import ReadingValidator


class TestRawReading:
    def test_geolocation_payload_shape(self) -> None:
        reading = RawReading.from_position(
            {
                "coords": {
                    "latitude": -6.2,
                    "longitude": 106.8,
                    "accuracy": 12,
                    "altitude": None,
                    "altitudeAccuracy": 4,
                    "speed": 1.5,
                    "heading": 270,
                },
                "timestamp": 1_700_000_000_000,
            }
        )

        assert reading.lat == -6.2
        assert reading.lng == 106.8
        assert reading.accuracy_meters == 12.0
        assert reading.timestamp_ms == 1_700_000_000_000
        assert reading.altitude is None
        assert reading.altitude_accuracy == 4.0
        assert reading.speed_mps == 1.5
        assert reading.heading_deg == 270.0

    def test_flat_aliases_and_string_numbers(self) -> None:
        reading = RawReading.from_position({"lat": "-6.2", "lon": "106.8", "acc": "9", "time": "42"})

        assert (reading.lat, reading.lng, reading.accuracy_meters, reading.timestamp_ms) == (-6.2, 106.8, 9.0, 42)

    def test_missing_timestamp_defaults_to_now(self) -> None:
        before = int(time.time() * 1000)
        reading = RawReading(lat=1.0, lng=2.0, accuracy_meters=3.0)
        assert reading.timestamp_ms >= before

    def test_malformed_values_become_nan_and_are_rejected(self) -> None:
        reading = RawReading.from_position({"latitude": "north", "longitude": 106.8, "accuracy": None})
        validator = ReadingValidator(StabilizerConfig())

        assert math.isnan(reading.lat)
        assert math.isnan(reading.accuracy_meters)
        assert validator.explain(reading) == "non-finite coordinates"

    @pytest.mark.parametrize("missing", ["latitude", "longitude", "accuracy"])
    def test_missing_required_field_raises(self, missing: str) -> None:
        coords = {"latitude": -6.2, "longitude": 106.8, "accuracy": 10}
        del coords[missing]

        with pytest.raises(ValidationError):
            RawReading.from_position({"coords": coords, "timestamp": 0})

    def test_is_immutable(self) -> None:
        reading = make_reading()
        with pytest.raises(ValidationError):
            reading.lat = 0.0  # type: ignore[misc]


@pytest.mark.parametrize(
    ("reading", "reason"),
    [
        (make_reading(10), None),
        (make_reading(10, lat=95.0), "coordinates out of range"),
        (make_reading(10, lng=-181.0), "coordinates out of range"),
        (make_reading(math.inf), "non-finite accuracy"),
        (make_reading(0), "non-positive accuracy"),
        (make_reading(1000), None),
        (make_reading(1000.5), "accuracy coarser than 1000 m"),
    ],
)
def test_validator_reasons(reading: RawReading, reason: str | None) -> None:
    assert ReadingValidator(StabilizerConfig()).explain(reading) == reason


class TestSensorFailure:
    @pytest.mark.parametrize(
        ("code", "name", "message"),
        [
            (1, "PERMISSION_DENIED", "Location permission denied"),
            (2, "POSITION_UNAVAILABLE", "Location data unavailable"),
            (3, "TIMEOUT", "Location request timed out"),
            (-1, "NOT_SUPPORTED", "Geolocation not supported"),
            (42, "UNKNOWN", "GPS error"),
        ],
    )
    def test_default_messages(self, code: int, name: str, message: str) -> None:
        failure = SensorFailure(code=code)
        assert failure.name == name
        assert failure.message == message

    def test_explicit_message_and_string_code(self) -> None:
        failure = SensorFailure(code="3", message="GPS timed out after 45s")
        assert failure.code == 3
        assert failure.message == "GPS timed out after 45s"

    def test_unparseable_code(self) -> None:
        assert SensorFailure(code="boom").code == 0


def test_acquisition_request_rejects_negative_timeout() -> None:
    with pytest.raises(ValidationError):
        AcquisitionRequest(generation=1, timeout_ms=-1)


class TestRefinedLocation:
    def test_to_external(self) -> None:
        location = RefinedLocation(
            lat=-6.2000026,
            lng=106.8,
            accuracy_meters=15.0,
            altitude=12.5,
            heading_deg=90.0,
            sample_count=2,
        )

        assert location.to_external(6) == {
            "lat": "-6.200003",
            "lng": "106.800000",
            "acc": 15.0,
            "altitude": 12.5,
            "altitudeAccuracy": None,
            "speed": None,
            "heading": 90.0,
        }

    def test_from_reading(self) -> None:
        reading = make_reading(8, speed_mps=2.0, ts=7)
        location = RefinedLocation.from_reading(reading)

        assert (location.lat, location.lng, location.accuracy_meters) == (reading.lat, reading.lng, 8.0)
        assert location.speed_mps == 2.0
        assert location.timestamp_ms == 7
        assert location.sample_count == 1


class TestEvents:
    def test_discriminated_union_round_trip(self) -> None:
        adapter = TypeAdapter(EngineEvent)

        event = adapter.validate_python({"kind": "error", "generation": 2, "code": 1, "message": "denied"})

        assert isinstance(event, ErrorEvent)
        assert event.kind == EventKind.ERROR

    def test_nested_models_validate(self) -> None:
        adapter = TypeAdapter(EngineEvent)

        event = adapter.validate_python(
            {
                "kind": "locationStable",
                "generation": 1,
                "location": {"lat": 1.0, "lng": 2.0, "accuracy_meters": 3.0},
            }
        )

        assert isinstance(event, LocationStableEvent)
        assert event.location.accuracy_meters == 3.0

    def test_state_change_serializes_states_as_strings(self) -> None:
        event = StateChangeEvent(state=StabilizationState.STABLE, previous=StabilizationState.STABILIZING)
        dumped = event.model_dump(mode="json")

        assert dumped["kind"] == "stateChange"
        assert dumped["state"] == "STABLE"
        assert dumped["previous"] == "STABILIZING"

    def test_unknown_kind_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TypeAdapter(EngineEvent).validate_python({"kind": "teleport"})
