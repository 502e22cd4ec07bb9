"""GTFS data normalizer - cleans and converts raw CSV rows into schedule models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from lt_transport.logging import get_logger
from lt_transport.models import (
    GTFS_ROUTE_TYPE_MAP,
    Agency,
    CalendarException,
    Route,
    ServiceCalendar,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
    VehicleType,
)
from lt_transport.services.normalization.coordinates import BoundingBox
from lt_transport.services.normalization.encoding import clean_text_field

logger = get_logger(__name__)

# Stops are accepted over a slightly wider box than live positions so that
# border-town terminals survive.
STOP_BOUNDS = BoundingBox(lat_min=53.5, lat_max=56.5, lon_min=20.5, lon_max=27.0)

DEFAULT_ROUTE_COLOR = "FFFFFF"
DEFAULT_ROUTE_TEXT_COLOR = "000000"

CALENDAR_EXCEPTION_TYPES = {"1": "added", "2": "removed"}
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class TimeParseError(Exception):
    """Raised when a GTFS time string cannot be parsed."""


class NormalizationError(Exception):
    """Raised when a row cannot be normalized."""


class GtfsNormalizer:
    """Normalizes raw GTFS CSV rows into schedule models."""

    @staticmethod
    def normalize_route(row: dict[str, Any]) -> Route:
        """Normalize a routes.txt row.

        Raises:
            NormalizationError: If route_id, route_short_name or route_type is missing/invalid.
        """
        route_id = _clean_str(row.get("route_id"))
        short_name = clean_text_field(row.get("route_short_name"))
        long_name = clean_text_field(row.get("route_long_name"))
        type_str = _clean_str(row.get("route_type"))

        if not route_id:
            raise NormalizationError("Missing route_id")
        if not short_name:
            raise NormalizationError(f"Missing route_short_name for route_id={route_id}")
        try:
            route_type = int(type_str)
        except ValueError as exc:
            raise NormalizationError(
                f"Invalid route_type={type_str!r} for route_id={route_id}"
            ) from exc

        return Route(
            id=route_id,
            short_name=short_name,
            long_name=long_name,
            type=GTFS_ROUTE_TYPE_MAP.get(route_type, VehicleType.UNKNOWN),
            color=_clean_color(row.get("route_color"), DEFAULT_ROUTE_COLOR),
            text_color=_clean_color(row.get("route_text_color"), DEFAULT_ROUTE_TEXT_COLOR),
        )

    @staticmethod
    def normalize_stop(row: dict[str, Any]) -> Stop:
        """Normalize a stops.txt row.

        Raises:
            NormalizationError: If required fields are missing, invalid or out of bounds.
        """
        stop_id = _clean_str(row.get("stop_id"))
        name = clean_text_field(row.get("stop_name"))
        lat_str = _clean_str(row.get("stop_lat"))
        lon_str = _clean_str(row.get("stop_lon"))

        if not stop_id:
            raise NormalizationError("Missing stop_id")
        if not name:
            raise NormalizationError(f"Missing stop_name for stop_id={stop_id}")

        try:
            lat = float(lat_str)
            lon = float(lon_str)
        except ValueError as exc:
            raise NormalizationError(
                f"Invalid lat/lon for stop_id={stop_id}: lat={lat_str!r}, lon={lon_str!r}"
            ) from exc

        if not STOP_BOUNDS.contains(lat, lon):
            raise NormalizationError(f"Stop outside service area: stop_id={stop_id} ({lat}, {lon})")

        return Stop(
            id=stop_id,
            code=_clean_str(row.get("stop_code")) or None,
            name=name,
            description=clean_text_field(row.get("stop_desc")) or None,
            latitude=lat,
            longitude=lon,
        )

    @staticmethod
    def normalize_trip(row: dict[str, Any]) -> Trip:
        """Normalize a trips.txt row.

        Raises:
            NormalizationError: If required fields are missing.
        """
        trip_id = _clean_str(row.get("trip_id"))
        route_id = _clean_str(row.get("route_id"))
        service_id = _clean_str(row.get("service_id"))
        direction_id_str = _clean_str(row.get("direction_id"))

        if not trip_id:
            raise NormalizationError("Missing trip_id")
        if not route_id:
            raise NormalizationError(f"Missing route_id for trip_id={trip_id}")
        if not service_id:
            raise NormalizationError(f"Missing service_id for trip_id={trip_id}")

        # direction_id is optional in GTFS
        direction_id: int | None = None
        if direction_id_str:
            if direction_id_str in ("0", "1"):
                direction_id = int(direction_id_str)
            else:
                logger.warning(
                    "Invalid direction_id, ignoring",
                    trip_id=trip_id,
                    direction_id=direction_id_str,
                )

        return Trip(
            id=trip_id,
            route_id=route_id,
            service_id=service_id,
            headsign=clean_text_field(row.get("trip_headsign")) or None,
            short_name=_clean_str(row.get("trip_short_name")) or None,
            direction_id=direction_id,
            block_id=_clean_str(row.get("block_id")) or None,
            shape_id=_clean_str(row.get("shape_id")) or None,
        )

    @staticmethod
    def normalize_shape_point(row: dict[str, Any]) -> tuple[str, ShapePoint]:
        """Normalize a shapes.txt row into ``(shape_id, point)``.

        Raises:
            NormalizationError: If required fields are missing/invalid.
        """
        shape_id = _clean_str(row.get("shape_id"))
        if not shape_id:
            raise NormalizationError("Missing shape_id")

        try:
            lat = float(_clean_str(row.get("shape_pt_lat")))
            lon = float(_clean_str(row.get("shape_pt_lon")))
            sequence = int(_clean_str(row.get("shape_pt_sequence")))
        except ValueError as exc:
            raise NormalizationError(f"Invalid shape point for shape_id={shape_id}") from exc

        dist: float | None = None
        dist_str = _clean_str(row.get("shape_dist_traveled"))
        if dist_str:
            try:
                dist = float(dist_str)
            except ValueError:
                dist = None

        return shape_id, ShapePoint(
            latitude=lat,
            longitude=lon,
            sequence=sequence,
            dist_traveled=dist,
        )

    @staticmethod
    def normalize_calendar(row: dict[str, Any]) -> ServiceCalendar:
        """Normalize a calendar.txt row. Dates become ISO ``YYYY-MM-DD``.

        Raises:
            NormalizationError: If service_id, a weekday flag or a date is invalid.
        """
        service_id = _clean_str(row.get("service_id"))
        if not service_id:
            raise NormalizationError("Missing service_id in calendar")

        days: dict[str, bool] = {}
        for day in WEEKDAYS:
            flag = _clean_str(row.get(day))
            if flag not in ("0", "1"):
                raise NormalizationError(f"Invalid {day}={flag!r} for service_id={service_id}")
            days[day] = flag == "1"

        return ServiceCalendar(
            service_id=service_id,
            start_date=gtfs_date_to_iso(_clean_str(row.get("start_date"))),
            end_date=gtfs_date_to_iso(_clean_str(row.get("end_date"))),
            **days,
        )

    @staticmethod
    def normalize_calendar_date(row: dict[str, Any]) -> CalendarException:
        """Normalize a calendar_dates.txt row.

        Raises:
            NormalizationError: If the date or exception_type is invalid.
        """
        service_id = _clean_str(row.get("service_id"))
        if not service_id:
            raise NormalizationError("Missing service_id in calendar_dates")

        type_str = _clean_str(row.get("exception_type"))
        exception_type = CALENDAR_EXCEPTION_TYPES.get(type_str)
        if exception_type is None:
            raise NormalizationError(
                f"Invalid exception_type={type_str!r} for service_id={service_id}"
            )

        return CalendarException(
            service_id=service_id,
            date=gtfs_date_to_iso(_clean_str(row.get("date"))),
            exception_type=exception_type,
        )

    @staticmethod
    def normalize_agency(row: dict[str, Any]) -> Agency:
        """Normalize an agency.txt row.

        Raises:
            NormalizationError: If agency_name, agency_url or agency_timezone is missing.
        """
        name = clean_text_field(row.get("agency_name"))
        url = _clean_str(row.get("agency_url"))
        tz = _clean_str(row.get("agency_timezone"))

        if not name:
            raise NormalizationError("Missing agency_name")
        if not url or not tz:
            raise NormalizationError(f"Missing agency_url or agency_timezone for {name!r}")

        return Agency(
            id=_clean_str(row.get("agency_id")) or None,
            name=name,
            url=url,
            timezone=tz,
            language=_clean_str(row.get("agency_lang")) or None,
            phone=_clean_str(row.get("agency_phone")) or None,
        )

    @staticmethod
    def normalize_stop_time(row: dict[str, Any]) -> tuple[str, StopTime]:
        """Normalize a stop_times.txt row into ``(trip_id, stop_time)``.

        Converts GTFS times (may be >24:00:00) to seconds from midnight.

        Raises:
            NormalizationError: If required fields are missing/invalid.
            TimeParseError: If a present time field is malformed.
        """
        trip_id = _clean_str(row.get("trip_id"))
        stop_id = _clean_str(row.get("stop_id"))
        seq_str = _clean_str(row.get("stop_sequence"))

        if not trip_id:
            raise NormalizationError("Missing trip_id in stop_times")
        if not stop_id:
            raise NormalizationError(f"Missing stop_id in stop_times for trip_id={trip_id}")

        try:
            sequence = int(seq_str)
        except ValueError as exc:
            raise NormalizationError(
                f"Invalid stop_sequence={seq_str!r} for trip_id={trip_id}"
            ) from exc

        arrival = _clean_str(row.get("arrival_time")) or None
        departure = _clean_str(row.get("departure_time")) or None

        return trip_id, StopTime(
            stop_id=stop_id,
            sequence=sequence,
            arrival_time=arrival,
            departure_time=departure,
            arrival_seconds=parse_gtfs_time(arrival) if arrival else None,
            departure_seconds=parse_gtfs_time(departure) if departure else None,
            headsign=clean_text_field(row.get("stop_headsign")) or None,
            pickup_type=_optional_int(row.get("pickup_type")),
            drop_off_type=_optional_int(row.get("drop_off_type")),
        )


def parse_gtfs_time(time_str: str) -> int:
    """Parse a GTFS time string (H:MM:SS or HH:MM:SS) to seconds from midnight.

    Supports times >= 24:00:00 for trips spanning past midnight.

    Examples:
        "08:30:00" -> 30600
        "25:01:30" -> 90090

    Raises:
        TimeParseError: If the format is invalid.
    """
    time_str = time_str.strip()
    parts = time_str.split(":")
    if len(parts) != 3:
        msg = f"Invalid GTFS time format: {time_str!r} (expected HH:MM:SS)"
        raise TimeParseError(msg)

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2])
    except ValueError as exc:
        msg = f"Non-numeric components in GTFS time: {time_str!r}"
        raise TimeParseError(msg) from exc

    if minutes < 0 or minutes > 59 or seconds < 0 or seconds > 59:
        msg = f"Invalid minutes/seconds in GTFS time: {time_str!r}"
        raise TimeParseError(msg)

    if hours < 0:
        msg = f"Negative hours in GTFS time: {time_str!r}"
        raise TimeParseError(msg)

    return hours * 3600 + minutes * 60 + seconds


def gtfs_date_to_iso(date_str: str) -> str:
    """Convert a GTFS date (YYYYMMDD) to ISO ``YYYY-MM-DD``.

    Raises:
        NormalizationError: If the value is not a valid 8-digit date.
    """
    date_str = date_str.strip()
    if len(date_str) != 8 or not date_str.isdigit():
        raise NormalizationError(f"Invalid GTFS date: {date_str!r} (expected YYYYMMDD)")
    try:
        parsed = datetime.strptime(date_str, "%Y%m%d").date()
    except ValueError as exc:
        raise NormalizationError(f"Invalid GTFS date: {date_str!r}") from exc
    return parsed.isoformat()


def _clean_color(value: Any, default: str) -> str:
    color = _clean_str(value).replace("#", "")
    return color or default


def _optional_int(value: Any) -> int | None:
    text = _clean_str(value)
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _clean_str(value: Any) -> str:
    """Trim whitespace from a value, return empty string for None."""
    if value is None:
        return ""
    return str(value).strip()
