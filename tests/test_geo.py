from __future__ import annotations

import math

import pytest

from pygeofix._geo import fast_distance_m, format_coordinate, haversine_m


def test_haversine_one_degree_of_latitude() -> None:
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)


def test_fast_distance_matches_haversine_for_short_hops() -> None:
    args = (-6.2, 106.8, -6.2001, 106.8001)
    assert fast_distance_m(*args) == pytest.approx(haversine_m(*args), rel=1e-4)


def test_fast_distance_falls_back_beyond_limit() -> None:
    args = (10.0, 20.0, 12.0, 25.0)
    assert fast_distance_m(*args) == haversine_m(*args)


@pytest.mark.parametrize("fn", [haversine_m, fast_distance_m])
def test_nan_is_never_close(fn) -> None:
    assert fn(math.nan, 0.0, 0.0, 0.0) == math.inf


def test_zero_distance() -> None:
    assert fast_distance_m(-6.2, 106.8, -6.2, 106.8) == 0.0


@pytest.mark.parametrize(
    ("value", "precision", "expected"),
    [
        (-6.2, 6, "-6.200000"),
        (106.123456789, 6, "106.123457"),
        (1.5, 2, "1.50"),
        (math.nan, 6, "0.000000"),
        (None, 3, "0.000"),
    ],
)
def test_format_coordinate(value, precision: int, expected: str) -> None:
    assert format_coordinate(value, precision) == expected
