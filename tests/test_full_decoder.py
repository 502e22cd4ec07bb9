"""Tests for the header-mapped (full-format) feed decoder."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from lt_transport.cities import HeaderFeedDescriptor
from lt_transport.errors import ConfigurationError
from lt_transport.models import VehiclePosition, VehicleType
from lt_transport.services.gps.decoder import decode_feed
from lt_transport.services.gps.filters import DecodeOptions, apply_filters
from lt_transport.services.gps.full_decoder import HeaderMappedDecoder, build_column_map

from .fixtures.gps_fixture import (
    BOM_FEED,
    FULL_FEED,
    KAUNAS_FEED,
    MISSING_VEHICLE_COLUMN_FEED,
)

VILNIUS = ZoneInfo("Europe/Vilnius")
# 10:00 local time in Vilnius (summer, UTC+3)
REFERENCE = datetime(2024, 6, 15, 7, 0, tzinfo=timezone.utc)
OPTIONS = DecodeOptions(tz=VILNIUS)


def decode(text: str, city: str = "vilnius", options: DecodeOptions = OPTIONS):
    return HeaderMappedDecoder(HeaderFeedDescriptor()).decode(text, city, REFERENCE, options)


class TestBuildColumnMap:
    def test_maps_trimmed_names(self) -> None:
        assert build_column_map(" A , B,C\r") == {"A": 0, "B": 1, "C": 2}

    def test_strips_bom(self) -> None:
        assert build_column_map("\ufeffTransportas,Marsrutas") == {"Transportas": 0, "Marsrutas": 1}

    def test_drops_empty_names(self) -> None:
        assert build_column_map("A,,B") == {"A": 0, "B": 2}


class TestHeaderValidation:
    def test_missing_vehicle_number_column_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="MasinosNumeris"):
            decode(MISSING_VEHICLE_COLUMN_FEED)

    def test_error_carries_city(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            decode(MISSING_VEHICLE_COLUMN_FEED, city="kaunas")
        assert exc_info.value.city == "kaunas"

    def test_header_only_returns_empty(self) -> None:
        assert decode("Transportas,Marsrutas\n") == []

    def test_empty_text_returns_empty(self) -> None:
        assert decode("") == []


class TestDecodeRows:
    def test_minimal_row(self) -> None:
        text = "Transportas,Marsrutas,MasinosNumeris,Ilguma,Platuma\nAutobusai,3G,1234,25279700,54687200\n"
        positions = decode(text)
        assert len(positions) == 1
        p = positions[0]
        assert p.route == "3G"
        assert p.type == VehicleType.BUS
        assert p.latitude == pytest.approx(54.6872)
        assert p.longitude == pytest.approx(25.2797)
        assert p.id == "vilnius-1234-3G"
        assert p.speed == 0
        assert p.bearing == 0
        assert p.measured_at == REFERENCE
        assert not p.is_stale

    def test_invalid_rows_skipped_in_order(self) -> None:
        positions = decode(FULL_FEED)
        assert [p.vehicle_number for p in positions] == ["1234", "2001", "3001", "3002", "5001", "6001"]

    def test_optional_columns(self) -> None:
        p = decode(FULL_FEED)[0]
        assert p.trip_id == "1001"
        assert p.gtfs_trip_id == "gtfs-1"
        assert p.delay_seconds == -30
        assert p.destination == "Santariškės"
        assert p.speed == 35
        assert p.bearing == 90

    def test_measurement_time_from_service_day_seconds(self) -> None:
        p = decode(FULL_FEED)[0]
        # MatavimoLaikas=3600 -> 01:00 local on the reference date
        assert p.measured_at == datetime(2024, 6, 15, 1, 0, tzinfo=VILNIUS)
        assert p.is_stale

    def test_zero_measurement_time_falls_back_to_reference(self) -> None:
        p = decode(FULL_FEED)[1]
        assert p.measured_at == REFERENCE
        assert not p.is_stale

    def test_speed_and_bearing_normalized(self) -> None:
        positions = decode(FULL_FEED)
        assert positions[1].speed == 0
        assert positions[1].bearing == 270
        assert positions[2].bearing == 5

    def test_invalid_speed_and_bearing_default_to_zero(self) -> None:
        p = decode(FULL_FEED)[3]
        assert p.speed == 0
        assert p.bearing == 0

    def test_vehicle_types(self) -> None:
        types = [p.type for p in decode(FULL_FEED)]
        assert types[:5] == [
            VehicleType.BUS,
            VehicleType.TROLLEYBUS,
            VehicleType.FERRY,
            VehicleType.FERRY,
            VehicleType.UNKNOWN,
        ]

    def test_empty_destination_is_none(self) -> None:
        assert decode(FULL_FEED)[1].destination is None

    def test_trip_id_fallback_column(self) -> None:
        p = decode(KAUNAS_FEED, city="kaunas")[0]
        assert p.trip_id == "G-17"
        assert p.next_stop_id == "1234"
        assert p.arrival_time_seconds == 39600
        assert p.delay_seconds == 45
        # predicted arrival is not a measurement time
        assert p.measured_at == REFERENCE

    def test_custom_trip_id_columns(self) -> None:
        descriptor = HeaderFeedDescriptor(trip_id_column="Grafikas", trip_id_fallback_column=None)
        p = HeaderMappedDecoder(descriptor).decode(KAUNAS_FEED, "kaunas", REFERENCE, OPTIONS)[0]
        assert p.trip_id == "G-17"

    def test_bom_and_crlf(self) -> None:
        positions = decode(BOM_FEED, city="klaipeda")
        assert len(positions) == 1
        assert positions[0].id == "klaipeda-9001-8"
        assert positions[0].latitude == pytest.approx(55.71)

    def test_short_row_padded(self) -> None:
        text = "Transportas,Marsrutas,MasinosNumeris,Ilguma,Platuma,Greitis\nAutobusai,1,77,25279700,54687200\n"
        positions = decode(text)
        assert len(positions) == 1
        assert positions[0].speed == 0

    def test_unknown_columns_ignored(self) -> None:
        text = "Transportas,Marsrutas,MasinosNumeris,Ilguma,Platuma,Naujas\nAutobusai,1,77,25279700,54687200,x\n"
        assert len(decode(text)) == 1


class TestDecodeFeedFilters:
    def test_out_of_bounds_filtered(self) -> None:
        positions = decode_feed(FULL_FEED, "vilnius", HeaderFeedDescriptor(), REFERENCE, OPTIONS)
        assert "6001" not in [p.vehicle_number for p in positions]
        assert len(positions) == 5

    def test_bounds_filter_disabled(self) -> None:
        options = DecodeOptions(tz=VILNIUS, filter_invalid_coords=False)
        positions = decode_feed(FULL_FEED, "vilnius", HeaderFeedDescriptor(), REFERENCE, options)
        assert len(positions) == 6

    def test_stale_filter(self) -> None:
        options = DecodeOptions(tz=VILNIUS, filter_stale=True)
        positions = decode_feed(FULL_FEED, "vilnius", HeaderFeedDescriptor(), REFERENCE, options)
        assert "1234" not in [p.vehicle_number for p in positions]
        assert all(not p.is_stale for p in positions)

    def test_stale_threshold_respected(self) -> None:
        one_day = int(timedelta(days=1).total_seconds())
        options = DecodeOptions(tz=VILNIUS, filter_stale=True, stale_threshold_sec=one_day)
        positions = decode_feed(FULL_FEED, "vilnius", HeaderFeedDescriptor(), REFERENCE, options)
        assert "1234" in [p.vehicle_number for p in positions]

    def test_non_finite_coordinates_filtered(self) -> None:
        def position(number: str, latitude: float) -> VehiclePosition:
            return VehiclePosition(
                id=f"vilnius-{number}-1G",
                vehicle_number=number,
                route="1G",
                type=VehicleType.BUS,
                latitude=latitude,
                longitude=25.28,
                bearing=0,
                speed=0,
                measured_at=REFERENCE,
            )

        kept = apply_filters([position("1", float("nan")), position("2", 54.69)], OPTIONS)
        assert [p.vehicle_number for p in kept] == ["2"]
