"""Fixed-point coordinate conversion, bounds checks, bearing and speed."""

from __future__ import annotations

import math
from dataclasses import dataclass

# Wire convention: signed integer = decimal degrees * 1_000_000
COORDINATE_DIVISOR = 1_000_000


@dataclass(frozen=True)
class BoundingBox:
    """Geographic rectangle in decimal degrees, inclusive on all edges."""

    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lon_min <= lon <= self.lon_max


LITHUANIA_BOUNDS = BoundingBox(lat_min=53.89, lat_max=56.45, lon_min=20.93, lon_max=26.83)


def normalize_coordinate(raw: int | float) -> float:
    """Convert a fixed-point wire coordinate to decimal degrees.

    Examples:
        25279700 -> 25.2797
        54687200 -> 54.6872
    """
    return raw / COORDINATE_DIVISOR


def is_in_bounds(lat: float, lon: float, bounds: BoundingBox = LITHUANIA_BOUNDS) -> bool:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return bounds.contains(lat, lon)


def normalize_and_validate_coordinates(
    raw_lat: int | float,
    raw_lon: int | float,
    bounds: BoundingBox = LITHUANIA_BOUNDS,
) -> tuple[float, float] | None:
    """Normalize a raw coordinate pair, returning None if it falls outside ``bounds``."""
    lat = normalize_coordinate(raw_lat)
    lon = normalize_coordinate(raw_lon)
    if not is_in_bounds(lat, lon, bounds):
        return None
    return lat, lon


def normalize_bearing(bearing: float) -> float:
    """Fold a bearing into [0, 360). Non-finite input yields 0."""
    if not math.isfinite(bearing):
        return 0.0
    result = bearing % 360
    # -1e-20 % 360 rounds to 360.0
    if result >= 360:
        return 0.0
    return float(result)


def normalize_speed(speed: float) -> float:
    """Clamp speed to be non-negative. Non-finite input yields 0."""
    if not math.isfinite(speed):
        return 0.0
    return float(max(0.0, speed))
