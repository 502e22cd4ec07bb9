"""Header-mapped decoder for full-format feeds.

Full-format feeds start with a header row; each operator publishes a
different subset and order of columns, so every field is resolved by name.
The feed is never quoted, so lines are split on bare commas.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from lt_transport.errors import ConfigurationError, RowValidationError
from lt_transport.logging import get_logger
from lt_transport.models import LT_TRANSPORT_TYPE_MAP, VehiclePosition, VehicleType
from lt_transport.services.gps.schemas import FullFeedRow
from lt_transport.services.normalization.coordinates import (
    normalize_bearing,
    normalize_coordinate,
    normalize_speed,
)
from lt_transport.services.normalization.encoding import clean_text_field
from lt_transport.services.normalization.service_time import (
    is_data_stale,
    service_day_to_absolute,
)

if TYPE_CHECKING:
    from datetime import datetime

    from lt_transport.cities import HeaderFeedDescriptor
    from lt_transport.services.gps.filters import DecodeOptions

logger = get_logger(__name__)

BOM = "\ufeff"


def build_column_map(header_line: str) -> dict[str, int]:
    """Map trimmed column names to their index. Empty names are dropped."""
    if header_line.startswith(BOM):
        header_line = header_line[len(BOM) :]
    columns: dict[str, int] = {}
    for index, name in enumerate(header_line.split(",")):
        name = name.strip()
        if name:
            columns[name] = index
    return columns


def parse_vehicle_type(transport: str) -> VehicleType:
    return LT_TRANSPORT_TYPE_MAP.get(transport, VehicleType.UNKNOWN)


class HeaderMappedDecoder:
    """Decodes full-format feeds according to a ``HeaderFeedDescriptor``."""

    kind = "header"

    def __init__(self, descriptor: HeaderFeedDescriptor) -> None:
        self.descriptor = descriptor

    def validate_header(self, columns: dict[str, int], city: str) -> None:
        """Raise ConfigurationError if any required column is absent."""
        missing = [c for c in self.descriptor.required_columns if c not in columns]
        if missing:
            msg = f"Required column(s) {missing} not found in {city} feed header"
            raise ConfigurationError(msg, city)

    def decode(
        self,
        text: str,
        city: str,
        reference_time: datetime,
        options: DecodeOptions,
    ) -> list[VehiclePosition]:
        """Decode every data row, skipping rows that fail validation.

        Args:
            text: Feed body, header row first.
            city: City id, used for record ids and error context.
            reference_time: Fetch instant; fallback measurement time and the
                "now" that staleness is judged against.
            options: Staleness threshold and service-day timezone.

        Raises:
            ConfigurationError: If the header lacks a required column. No row
                is decoded in that case.
        """
        lines = [line for line in text.split("\n") if line.strip()]
        if len(lines) < 2:
            return []

        columns = build_column_map(lines[0])
        self.validate_header(columns, city)

        positions: list[VehiclePosition] = []
        skipped = 0
        for line_no, line in enumerate(lines[1:], start=2):
            try:
                positions.append(
                    self._decode_line(line, line_no, columns, city, reference_time, options)
                )
            except RowValidationError as exc:
                skipped += 1
                logger.debug("Skipping feed row", city=city, line=line_no, reason=str(exc))

        logger.info(
            "Full feed decoded",
            city=city,
            decoded=len(positions),
            skipped=skipped,
            columns=len(columns),
        )
        return positions

    def _decode_line(
        self,
        line: str,
        line_no: int,
        columns: dict[str, int],
        city: str,
        reference_time: datetime,
        options: DecodeOptions,
    ) -> VehiclePosition:
        cols = line.split(",")
        fields = {name: cols[idx].strip() if idx < len(cols) else "" for name, idx in columns.items()}

        try:
            row = FullFeedRow.model_validate(fields)
        except ValidationError as exc:
            raise RowValidationError(_first_error(exc), city, line_no) from exc

        measured_at = reference_time
        if row.measured_seconds is not None and row.measured_seconds > 0:
            local_date = reference_time.astimezone(options.tz).date()
            measured_at = service_day_to_absolute(row.measured_seconds, local_date, options.tz)

        destination = clean_text_field(row.destination) or None
        next_stop = str(row.next_stop_number) if row.next_stop_number is not None else None

        try:
            return VehiclePosition(
                id=f"{city}-{row.vehicle_number}-{row.route}",
                vehicle_number=row.vehicle_number,
                route=row.route,
                type=parse_vehicle_type(row.transport),
                latitude=normalize_coordinate(row.raw_latitude),
                longitude=normalize_coordinate(row.raw_longitude),
                bearing=normalize_bearing(row.bearing),
                speed=normalize_speed(row.speed),
                destination=destination,
                delay_seconds=row.delay_seconds,
                trip_id=self._resolve_trip_id(fields),
                gtfs_trip_id=row.gtfs_trip_id,
                next_stop_id=next_stop,
                arrival_time_seconds=row.arrival_seconds,
                is_stale=is_data_stale(measured_at, reference_time, options.stale_threshold_sec),
                measured_at=measured_at,
            )
        except ValidationError as exc:
            raise RowValidationError(_first_error(exc), city, line_no) from exc

    def _resolve_trip_id(self, fields: dict[str, str]) -> str | None:
        trip_id = fields.get(self.descriptor.trip_id_column)
        if trip_id:
            return trip_id
        fallback = self.descriptor.trip_id_fallback_column
        if fallback:
            return fields.get(fallback) or None
        return None


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err["loc"])
    return f"{loc}: {err['msg']}"
