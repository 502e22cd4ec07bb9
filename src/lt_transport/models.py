"""Canonical vehicle, schedule and cache models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class VehicleType(str, Enum):
    """Vehicle categories operated in Lithuanian cities."""

    BUS = "bus"
    TROLLEYBUS = "trolleybus"
    FERRY = "ferry"
    UNKNOWN = "unknown"


# GTFS route_type (standard and extended) to vehicle type
GTFS_ROUTE_TYPE_MAP: dict[int, VehicleType] = {
    3: VehicleType.BUS,
    800: VehicleType.TROLLEYBUS,
    4: VehicleType.FERRY,
    1200: VehicleType.FERRY,
}

# Transportas column values in full-format feeds
LT_TRANSPORT_TYPE_MAP: dict[str, VehicleType] = {
    "Autobusai": VehicleType.BUS,
    "Troleibusai": VehicleType.TROLLEYBUS,
    "Laivai": VehicleType.FERRY,
    "Keltai": VehicleType.FERRY,
}


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class VehiclePosition(_FrozenModel):
    """Normalized position of one vehicle, identical in shape for every city.

    Instances are immutable; enrichment produces a new value via
    ``model_copy(update=...)``.
    """

    id: str
    vehicle_number: str
    route: str
    type: VehicleType
    latitude: float
    longitude: float
    bearing: float = Field(ge=0, lt=360)
    speed: float = Field(ge=0)
    destination: str | None = None
    delay_seconds: int | None = None
    trip_id: str | None = None
    gtfs_trip_id: str | None = None
    next_stop_id: str | None = None
    arrival_time_seconds: int | None = None
    is_stale: bool = False
    measured_at: datetime


class Route(_FrozenModel):
    id: str
    short_name: str
    long_name: str
    type: VehicleType
    color: str = "FFFFFF"
    text_color: str = "000000"


class Stop(_FrozenModel):
    id: str
    code: str | None = None
    name: str
    description: str | None = None
    latitude: float
    longitude: float


class Trip(_FrozenModel):
    id: str
    route_id: str
    service_id: str
    headsign: str | None = None
    short_name: str | None = None
    direction_id: int | None = None
    block_id: str | None = None
    shape_id: str | None = None


class ShapePoint(_FrozenModel):
    latitude: float
    longitude: float
    sequence: int
    dist_traveled: float | None = None


class ServiceCalendar(_FrozenModel):
    service_id: str
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool
    start_date: str  # ISO YYYY-MM-DD
    end_date: str


class CalendarException(_FrozenModel):
    service_id: str
    date: str  # ISO YYYY-MM-DD
    exception_type: Literal["added", "removed"]


class Agency(_FrozenModel):
    id: str | None = None
    name: str
    url: str
    timezone: str
    language: str | None = None
    phone: str | None = None


class StopTime(_FrozenModel):
    stop_id: str
    sequence: int
    arrival_time: str | None = None
    departure_time: str | None = None
    arrival_seconds: int | None = None
    departure_seconds: int | None = None
    headsign: str | None = None
    pickup_type: int | None = None
    drop_off_type: int | None = None


class StaticScheduleSnapshot(_FrozenModel):
    """All static tables for one city from a single sync.

    ``routes`` holds every route twice, under its short name and its id.
    Shape points and stop times are sorted by sequence.
    """

    routes: dict[str, Route] = Field(default_factory=dict)
    stops: list[Stop] = Field(default_factory=list)
    trips: dict[str, Trip] = Field(default_factory=dict)
    shapes: dict[str, list[ShapePoint]] = Field(default_factory=dict)
    calendars: dict[str, ServiceCalendar] = Field(default_factory=dict)
    calendar_exceptions: list[CalendarException] = Field(default_factory=list)
    agencies: list[Agency] = Field(default_factory=list)
    stop_times: dict[str, list[StopTime]] = Field(default_factory=dict)

    def unique_routes(self) -> list[Route]:
        """Routes deduplicated by id, in first-seen order."""
        seen: dict[str, Route] = {}
        for route in self.routes.values():
            seen.setdefault(route.id, route)
        return list(seen.values())

    def entity_counts(self) -> dict[str, int]:
        return {
            "routes": len(self.unique_routes()),
            "stops": len(self.stops),
            "trips": len(self.trips),
            "shapes": len(self.shapes),
            "calendar": len(self.calendars),
            "calendar_dates": len(self.calendar_exceptions),
            "agencies": len(self.agencies),
            "stop_times": len(self.stop_times),
        }


class CacheMetadata(_FrozenModel):
    """Stored alongside each city's cached snapshot."""

    last_modified: str | None = None
    synced_at: datetime
    counts: dict[str, int] = Field(default_factory=dict)

    @property
    def route_count(self) -> int:
        return self.counts.get("routes", 0)

    @property
    def stop_count(self) -> int:
        return self.counts.get("stops", 0)


SyncStatus = Literal["updated", "up-to-date"]


class SyncResult(_FrozenModel):
    city: str
    status: SyncStatus
    counts: dict[str, int] = Field(default_factory=dict)
    last_modified: str | None = None
    synced_at: datetime

    @property
    def route_count(self) -> int:
        return self.counts.get("routes", 0)

    @property
    def stop_count(self) -> int:
        return self.counts.get("stops", 0)

    @classmethod
    def from_metadata(cls, city: str, meta: CacheMetadata, status: SyncStatus) -> SyncResult:
        return cls(
            city=city,
            status=status,
            counts=dict(meta.counts),
            last_modified=meta.last_modified,
            synced_at=meta.synced_at,
        )
