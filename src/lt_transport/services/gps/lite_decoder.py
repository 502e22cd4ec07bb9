"""Offset-mapped decoder for headerless lite-format feeds.

All shape knowledge lives in the ``OffsetFeedDescriptor``. This module
never branches on the operator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from lt_transport.errors import RowValidationError
from lt_transport.logging import get_logger
from lt_transport.models import VehiclePosition, VehicleType
from lt_transport.services.gps.schemas import LiteFeedRow
from lt_transport.services.normalization.coordinates import (
    normalize_bearing,
    normalize_coordinate,
    normalize_speed,
)
from lt_transport.services.normalization.service_time import (
    is_data_stale,
    service_day_to_absolute,
)

if TYPE_CHECKING:
    from datetime import datetime

    from lt_transport.cities import OffsetFeedDescriptor
    from lt_transport.services.gps.filters import DecodeOptions

logger = get_logger(__name__)

# Lite feeds carry no usable vehicle type discriminator
DEFAULT_VEHICLE_TYPE = VehicleType.BUS


class OffsetMappedDecoder:
    """Decodes lite-format feeds according to an ``OffsetFeedDescriptor``."""

    kind = "offset"

    def __init__(self, descriptor: OffsetFeedDescriptor) -> None:
        self.descriptor = descriptor

    def decode(
        self,
        text: str,
        city: str,
        reference_time: datetime,
        options: DecodeOptions,
    ) -> list[VehiclePosition]:
        """Decode every line; short or invalid lines are skipped silently.

        Destination, trip ids, next stop, predicted arrival and delay are
        always ``None`` here. Only enrichment can fill the destination later.
        """
        positions: list[VehiclePosition] = []
        short = 0
        invalid = 0
        for line_no, line in enumerate(text.split("\n"), start=1):
            if not line.strip():
                continue
            cols = line.split(",")
            if len(cols) < self.descriptor.min_columns:
                short += 1
                continue
            try:
                positions.append(self._decode_cols(cols, line_no, city, reference_time, options))
            except RowValidationError as exc:
                invalid += 1
                logger.debug("Skipping feed row", city=city, line=line_no, reason=str(exc))

        logger.info(
            "Lite feed decoded",
            city=city,
            decoded=len(positions),
            skipped_short=short,
            skipped_invalid=invalid,
        )
        return positions

    def _decode_cols(
        self,
        cols: list[str],
        line_no: int,
        city: str,
        reference_time: datetime,
        options: DecodeOptions,
    ) -> VehiclePosition:
        d = self.descriptor
        try:
            row = LiteFeedRow(
                vehicle_id=cols[d.vehicle_id_index],
                route=cols[d.route_index],
                raw_latitude=cols[d.latitude_index],
                raw_longitude=cols[d.longitude_index],
                speed=cols[d.speed_index],
                bearing=cols[d.bearing_index],
                type_code=cols[d.type_index] if d.type_index is not None else None,
                measured_seconds=cols[d.timestamp_index] if d.timestamp_index is not None else None,
            )
        except ValidationError as exc:
            err = exc.errors()[0]
            msg = f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            raise RowValidationError(msg, city, line_no) from exc

        measured_at = reference_time
        is_stale = False
        if row.measured_seconds is not None:
            local_date = reference_time.astimezone(options.tz).date()
            measured_at = service_day_to_absolute(row.measured_seconds, local_date, options.tz)
            is_stale = is_data_stale(measured_at, reference_time, options.stale_threshold_sec)

        try:
            return VehiclePosition(
                id=f"{city}-{row.vehicle_id}",
                vehicle_number=row.vehicle_id,
                route=row.route,
                type=DEFAULT_VEHICLE_TYPE,
                latitude=normalize_coordinate(row.raw_latitude),
                longitude=normalize_coordinate(row.raw_longitude),
                bearing=normalize_bearing(row.bearing),
                speed=normalize_speed(row.speed),
                is_stale=is_stale,
                measured_at=measured_at,
            )
        except ValidationError as exc:
            raise RowValidationError(str(exc), city, line_no) from exc
