"""Decode options and post-decode filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from lt_transport.services.normalization.coordinates import (
    LITHUANIA_BOUNDS,
    BoundingBox,
    is_in_bounds,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lt_transport.config import Settings
    from lt_transport.models import VehiclePosition


@dataclass(frozen=True)
class DecodeOptions:
    """Per-call decoding behaviour, derived from ``Settings``."""

    filter_invalid_coords: bool = True
    filter_stale: bool = False
    stale_threshold_sec: int = 300
    tz: tzinfo = field(default_factory=lambda: ZoneInfo("Europe/Vilnius"))
    bounds: BoundingBox = LITHUANIA_BOUNDS

    @classmethod
    def from_settings(cls, settings: Settings) -> DecodeOptions:
        return cls(
            filter_invalid_coords=settings.filter_invalid_coords,
            filter_stale=settings.filter_stale,
            stale_threshold_sec=settings.stale_threshold_sec,
            tz=ZoneInfo(settings.timezone),
        )


def apply_filters(
    positions: Iterable[VehiclePosition],
    options: DecodeOptions,
) -> list[VehiclePosition]:
    """Drop out-of-bounds then stale positions. Order is preserved."""
    result = list(positions)
    if options.filter_invalid_coords:
        result = [p for p in result if is_in_bounds(p.latitude, p.longitude, options.bounds)]
    if options.filter_stale:
        result = [p for p in result if not p.is_stale]
    return result
