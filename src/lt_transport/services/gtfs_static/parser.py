"""GTFS CSV parsing into typed schedule structures.

Unlike the live feeds, GTFS tables use RFC 4180 quoting, so rows go through
the ``csv`` module. Each builder skips rows the normalizer rejects.
"""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Callable, TypeVar

from lt_transport.logging import get_logger
from lt_transport.services.gtfs_static.normalizer import (
    GtfsNormalizer,
    NormalizationError,
    TimeParseError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from lt_transport.models import (
        Agency,
        CalendarException,
        Route,
        ServiceCalendar,
        ShapePoint,
        Stop,
        StopTime,
        Trip,
    )

logger = get_logger(__name__)

T = TypeVar("T")


def iter_rows(content: str) -> Iterator[dict[str, str]]:
    """Yield one dict per data row, keyed by trimmed header names.

    Values are trimmed. Rows shorter than the header are padded with ""
    and extra trailing fields are dropped. Blank lines are skipped.
    """
    reader = csv.reader(io.StringIO(content))
    header: list[str] | None = None
    for raw in reader:
        if not raw or all(not field.strip() for field in raw):
            continue
        if header is None:
            header = [name.lstrip("\ufeff").strip() for name in raw]
            continue
        values = [field.strip() for field in raw]
        if len(values) < len(header):
            values.extend([""] * (len(header) - len(values)))
        yield dict(zip(header, values))


def _normalize_all(content: str, table: str, normalize: Callable[[dict[str, str]], T]) -> Iterator[T]:
    parsed = 0
    skipped = 0
    for row in iter_rows(content):
        try:
            item = normalize(row)
        except (NormalizationError, TimeParseError) as exc:
            skipped += 1
            logger.debug("Skipping GTFS row", table=table, reason=str(exc))
            continue
        parsed += 1
        yield item
    logger.info("GTFS table parsed", table=table, rows=parsed, skipped=skipped)


def parse_routes(content: str) -> dict[str, Route]:
    """Routes keyed by BOTH short name and route id; both keys share one object."""
    routes: dict[str, Route] = {}
    for route in _normalize_all(content, "routes.txt", GtfsNormalizer.normalize_route):
        routes[route.short_name] = route
        routes[route.id] = route
    return routes


def parse_stops(content: str) -> list[Stop]:
    return list(_normalize_all(content, "stops.txt", GtfsNormalizer.normalize_stop))


def parse_trips(content: str) -> dict[str, Trip]:
    return {t.id: t for t in _normalize_all(content, "trips.txt", GtfsNormalizer.normalize_trip)}


def parse_shapes(content: str) -> dict[str, list[ShapePoint]]:
    """Shape points grouped by shape id, each group sorted by sequence."""
    shapes: dict[str, list[ShapePoint]] = {}
    for shape_id, point in _normalize_all(content, "shapes.txt", GtfsNormalizer.normalize_shape_point):
        shapes.setdefault(shape_id, []).append(point)
    # sorted once after full ingestion, not on every insert
    for points in shapes.values():
        points.sort(key=lambda p: p.sequence)
    return shapes


def parse_calendar(content: str) -> dict[str, ServiceCalendar]:
    return {
        c.service_id: c
        for c in _normalize_all(content, "calendar.txt", GtfsNormalizer.normalize_calendar)
    }


def parse_calendar_dates(content: str) -> list[CalendarException]:
    return list(_normalize_all(content, "calendar_dates.txt", GtfsNormalizer.normalize_calendar_date))


def parse_agencies(content: str) -> list[Agency]:
    return list(_normalize_all(content, "agency.txt", GtfsNormalizer.normalize_agency))


def parse_stop_times(content: str) -> dict[str, list[StopTime]]:
    """Stop times grouped by trip id, each group sorted by stop sequence."""
    stop_times: dict[str, list[StopTime]] = {}
    for trip_id, stop_time in _normalize_all(
        content, "stop_times.txt", GtfsNormalizer.normalize_stop_time
    ):
        stop_times.setdefault(trip_id, []).append(stop_time)
    for entries in stop_times.values():
        entries.sort(key=lambda st: st.sequence)
    return stop_times


# Archive member -> builder
TABLE_PARSERS: dict[str, Callable[[str], object]] = {
    "routes.txt": parse_routes,
    "stops.txt": parse_stops,
    "trips.txt": parse_trips,
    "shapes.txt": parse_shapes,
    "calendar.txt": parse_calendar,
    "calendar_dates.txt": parse_calendar_dates,
    "agency.txt": parse_agencies,
    "stop_times.txt": parse_stop_times,
}
