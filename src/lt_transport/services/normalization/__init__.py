"""Leaf utilities shared by every feed decoder."""

from lt_transport.services.normalization.coordinates import (
    LITHUANIA_BOUNDS,
    BoundingBox,
    is_in_bounds,
    normalize_and_validate_coordinates,
    normalize_bearing,
    normalize_coordinate,
    normalize_speed,
)
from lt_transport.services.normalization.encoding import (
    clean_text_field,
    decode_baltic_text,
    decode_windows_1257,
    has_mojibake,
    repair_mojibake,
)
from lt_transport.services.normalization.service_time import (
    is_data_stale,
    parse_time_seconds,
    seconds_from_midnight,
    service_day_to_absolute,
)

__all__ = [
    "LITHUANIA_BOUNDS",
    "BoundingBox",
    "clean_text_field",
    "decode_baltic_text",
    "decode_windows_1257",
    "has_mojibake",
    "is_data_stale",
    "is_in_bounds",
    "normalize_and_validate_coordinates",
    "normalize_bearing",
    "normalize_coordinate",
    "normalize_speed",
    "parse_time_seconds",
    "repair_mojibake",
    "seconds_from_midnight",
    "service_day_to_absolute",
]
