"""Tests for service-day time conversion and staleness."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from lt_transport.services.normalization.service_time import (
    is_data_stale,
    parse_time_seconds,
    seconds_from_midnight,
    service_day_to_absolute,
)

VILNIUS = ZoneInfo("Europe/Vilnius")
TODAY = date(2024, 6, 15)


class TestServiceDayToAbsolute:
    def test_within_day_anchors_to_today(self) -> None:
        result = service_day_to_absolute(3600, TODAY, VILNIUS)
        assert result == datetime(2024, 6, 15, 1, 0, tzinfo=VILNIUS)

    def test_overflow_anchors_to_yesterday(self) -> None:
        # 90000 s = 25:00 on the service day that began yesterday
        result = service_day_to_absolute(90000, TODAY, VILNIUS)
        assert result == datetime(2024, 6, 15, 1, 0, tzinfo=VILNIUS)

    def test_exactly_one_day_anchors_to_yesterday(self) -> None:
        result = service_day_to_absolute(86400, TODAY, VILNIUS)
        assert result == datetime(2024, 6, 15, 0, 0, tzinfo=VILNIUS)

    def test_just_below_one_day(self) -> None:
        result = service_day_to_absolute(86399, TODAY, VILNIUS)
        assert result == datetime(2024, 6, 15, 23, 59, 59, tzinfo=VILNIUS)

    def test_zero_is_midnight(self) -> None:
        result = service_day_to_absolute(0, TODAY, VILNIUS)
        assert result == datetime(2024, 6, 15, 0, 0, tzinfo=VILNIUS)

    def test_result_is_tz_aware(self) -> None:
        result = service_day_to_absolute(3600, TODAY, VILNIUS)
        assert result.tzinfo is not None
        # 01:00 EEST is 22:00 UTC the previous day
        assert result.astimezone(timezone.utc) == datetime(2024, 6, 14, 22, 0, tzinfo=timezone.utc)

    def test_utc_zone(self) -> None:
        result = service_day_to_absolute(7200, TODAY, timezone.utc)
        assert result == datetime(2024, 6, 15, 2, 0, tzinfo=timezone.utc)


class TestSecondsFromMidnight:
    def test_basic(self) -> None:
        assert seconds_from_midnight(datetime(2024, 6, 15, 1, 2, 3)) == 3723

    def test_midnight(self) -> None:
        assert seconds_from_midnight(datetime(2024, 6, 15)) == 0


class TestParseTimeSeconds:
    def test_valid(self) -> None:
        assert parse_time_seconds("3600") == 3600

    def test_whitespace(self) -> None:
        assert parse_time_seconds(" 42 ") == 42

    def test_empty(self) -> None:
        assert parse_time_seconds("") is None
        assert parse_time_seconds(None) is None

    def test_negative(self) -> None:
        assert parse_time_seconds("-1") is None

    def test_non_numeric(self) -> None:
        assert parse_time_seconds("abc") is None


class TestIsDataStale:
    NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_fresh(self) -> None:
        assert not is_data_stale(self.NOW - timedelta(seconds=60), self.NOW, 300)

    def test_stale(self) -> None:
        assert is_data_stale(self.NOW - timedelta(seconds=301), self.NOW, 300)

    def test_exactly_threshold_not_stale(self) -> None:
        assert not is_data_stale(self.NOW - timedelta(seconds=300), self.NOW, 300)

    def test_future_never_stale(self) -> None:
        assert not is_data_stale(self.NOW + timedelta(hours=2), self.NOW, 0)
