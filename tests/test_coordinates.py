"""Tests for coordinate, bearing and speed normalization."""

from __future__ import annotations

import math

import pytest

from lt_transport.services.normalization.coordinates import (
    LITHUANIA_BOUNDS,
    BoundingBox,
    is_in_bounds,
    normalize_and_validate_coordinates,
    normalize_bearing,
    normalize_coordinate,
    normalize_speed,
)


class TestNormalizeCoordinate:
    def test_longitude(self) -> None:
        assert normalize_coordinate(25279700) == pytest.approx(25.2797)

    def test_latitude(self) -> None:
        assert normalize_coordinate(54687200) == pytest.approx(54.6872)

    def test_negative(self) -> None:
        assert normalize_coordinate(-1500000) == pytest.approx(-1.5)

    def test_zero(self) -> None:
        assert normalize_coordinate(0) == 0


class TestBounds:
    def test_vilnius_in_bounds(self) -> None:
        assert is_in_bounds(54.6872, 25.2797)

    def test_paris_out_of_bounds(self) -> None:
        assert not is_in_bounds(48.8566, 2.3522)

    def test_edges_are_inclusive(self) -> None:
        assert is_in_bounds(LITHUANIA_BOUNDS.lat_min, LITHUANIA_BOUNDS.lon_min)
        assert is_in_bounds(LITHUANIA_BOUNDS.lat_max, LITHUANIA_BOUNDS.lon_max)

    def test_nan_is_out_of_bounds(self) -> None:
        assert not is_in_bounds(math.nan, 25.0)

    def test_custom_box(self) -> None:
        box = BoundingBox(lat_min=0, lat_max=1, lon_min=0, lon_max=1)
        assert is_in_bounds(0.5, 0.5, box)
        assert not is_in_bounds(54.6872, 25.2797, box)

    def test_normalize_and_validate_in_bounds(self) -> None:
        result = normalize_and_validate_coordinates(54687200, 25279700)
        assert result is not None
        lat, lon = result
        assert lat == pytest.approx(54.6872)
        assert lon == pytest.approx(25.2797)

    def test_normalize_and_validate_out_of_bounds(self) -> None:
        assert normalize_and_validate_coordinates(48856614, 2352222) is None


class TestNormalizeBearing:
    def test_negative_wraps(self) -> None:
        assert normalize_bearing(-90) == 270

    def test_over_360_wraps(self) -> None:
        assert normalize_bearing(725) == 5

    def test_exactly_360_is_zero(self) -> None:
        assert normalize_bearing(360) == 0

    def test_in_range_unchanged(self) -> None:
        assert normalize_bearing(180.5) == 180.5

    def test_non_finite_is_zero(self) -> None:
        assert normalize_bearing(math.nan) == 0
        assert normalize_bearing(math.inf) == 0

    def test_tiny_negative_stays_below_360(self) -> None:
        assert 0 <= normalize_bearing(-1e-20) < 360

    @pytest.mark.parametrize("value", [-720.5, -90, 0, 45, 359.9, 360, 725, 1e6])
    def test_idempotent(self, value: float) -> None:
        once = normalize_bearing(value)
        assert 0 <= once < 360
        assert normalize_bearing(once) == once


class TestNormalizeSpeed:
    def test_negative_clamped(self) -> None:
        assert normalize_speed(-5) == 0

    def test_positive_unchanged(self) -> None:
        assert normalize_speed(42.5) == 42.5

    def test_non_finite_is_zero(self) -> None:
        assert normalize_speed(math.nan) == 0
        assert normalize_speed(math.inf) == 0
