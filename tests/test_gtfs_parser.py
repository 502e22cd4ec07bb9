"""Tests for GTFS CSV parsing into schedule structures."""

from __future__ import annotations

import pytest

from lt_transport.models import VehicleType
from lt_transport.services.gtfs_static.parser import (
    iter_rows,
    parse_agencies,
    parse_calendar,
    parse_calendar_dates,
    parse_routes,
    parse_shapes,
    parse_stop_times,
    parse_stops,
    parse_trips,
)

from .fixtures.gtfs_fixture import (
    AGENCY_TXT,
    CALENDAR_DATES_TXT,
    CALENDAR_TXT,
    ROUTES_TXT,
    SHAPES_TXT,
    STOP_TIMES_TXT,
    STOPS_TXT,
    TRIPS_TXT,
)


class TestIterRows:
    def test_quoted_field_with_comma(self) -> None:
        rows = list(iter_rows('a,b\n"x, y",z\n'))
        assert rows == [{"a": "x, y", "b": "z"}]

    def test_short_row_padded(self) -> None:
        rows = list(iter_rows("a,b,c\n1\n"))
        assert rows == [{"a": "1", "b": "", "c": ""}]

    def test_blank_lines_skipped(self) -> None:
        rows = list(iter_rows("a,b\n\n1,2\n,\n3,4\n"))
        assert [r["a"] for r in rows] == ["1", "3"]

    def test_header_bom_and_whitespace(self) -> None:
        rows = list(iter_rows("\ufeff route_id , name\n r1 , Centras \n"))
        assert rows == [{"route_id": "r1", "name": "Centras"}]

    def test_crlf(self) -> None:
        rows = list(iter_rows("a,b\r\n1,2\r\n"))
        assert rows == [{"a": "1", "b": "2"}]

    def test_empty_content(self) -> None:
        assert list(iter_rows("")) == []


class TestParseRoutes:
    def test_keyed_by_short_name_and_id(self) -> None:
        routes = parse_routes(ROUTES_TXT)
        assert routes["1G"] is routes["route_1"]
        assert routes["12"].id == "route_4"
        assert len(routes) == 8

    def test_invalid_rows_skipped(self) -> None:
        routes = parse_routes(ROUTES_TXT)
        assert "99" not in routes
        assert "77" not in routes
        assert "route_6" not in routes

    def test_fields(self) -> None:
        routes = parse_routes(ROUTES_TXT)
        assert routes["1G"].color == "FF0000"
        assert routes["1G"].long_name == "Centras - Stotis"
        assert routes["3G"].type == VehicleType.TROLLEYBUS
        assert routes["3G"].color == "FFFFFF"
        assert routes["J25"].long_name == "Žiedinis"


class TestParseStops:
    def test_out_of_area_skipped(self) -> None:
        stops = parse_stops(STOPS_TXT)
        assert [s.id for s in stops] == ["stop_1", "stop_2", "stop_3"]

    def test_quoted_name(self) -> None:
        stop = parse_stops(STOPS_TXT)[1]
        assert stop.name == "Stotis, peronas 2"
        assert stop.code == "0102"
        assert stop.description == "Geležinkelio stotis"
        assert stop.longitude == pytest.approx(25.285)


class TestParseTrips:
    def test_keyed_by_id(self) -> None:
        trips = parse_trips(TRIPS_TXT)
        assert set(trips) == {"trip_001", "trip_002", "trip_003"}
        assert trips["trip_001"].block_id == "block_1"
        assert trips["trip_003"].headsign is None
        assert trips["trip_003"].direction_id is None


class TestParseShapes:
    def test_sorted_by_sequence(self) -> None:
        shapes = parse_shapes(SHAPES_TXT)
        assert [p.sequence for p in shapes["shape_1"]] == [0, 1]
        assert shapes["shape_1"][0].latitude == pytest.approx(54.6872)

    def test_missing_distance(self) -> None:
        shapes = parse_shapes(SHAPES_TXT)
        assert shapes["shape_2"][0].dist_traveled is None


class TestParseCalendar:
    def test_calendar(self) -> None:
        calendars = parse_calendar(CALENDAR_TXT)
        assert calendars["weekday"].friday
        assert not calendars["weekday"].saturday
        assert calendars["weekend"].start_date == "2024-01-01"

    def test_calendar_dates(self) -> None:
        exceptions = parse_calendar_dates(CALENDAR_DATES_TXT)
        assert [(e.service_id, e.exception_type) for e in exceptions] == [
            ("weekday", "removed"),
            ("weekend", "added"),
        ]


class TestParseAgencies:
    def test_agency(self) -> None:
        agencies = parse_agencies(AGENCY_TXT)
        assert len(agencies) == 1
        assert agencies[0].name == "Vilnius Transport"
        assert agencies[0].language == "lt"
        assert agencies[0].phone == "+370-5-1234567"


class TestParseStopTimes:
    def test_grouped_and_sorted(self) -> None:
        stop_times = parse_stop_times(STOP_TIMES_TXT)
        assert [st.stop_id for st in stop_times["trip_001"]] == ["stop_1", "stop_2", "stop_3"]
        assert stop_times["trip_001"][1].departure_seconds == 6 * 3600 + 5 * 60 + 30

    def test_past_midnight(self) -> None:
        st = parse_stop_times(STOP_TIMES_TXT)["trip_002"][0]
        assert st.arrival_seconds == 88200
        assert st.pickup_type is None

    def test_malformed_time_row_skipped(self) -> None:
        content = (
            "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
            "t1,06:00:00,06:00:00,s1,1\n"
            "t1,6am,6am,s2,2\n"
        )
        stop_times = parse_stop_times(content)
        assert [st.stop_id for st in stop_times["t1"]] == ["s1"]
