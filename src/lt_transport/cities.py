"""City matrix: live feed shapes and static archive locations per operator.

Feed shapes are data. A new operator publishing one of the two known feed
families needs a new entry here (or in a JSON override file), never a new
code path.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from lt_transport.errors import ConfigurationError
from lt_transport.logging import get_logger

logger = get_logger(__name__)

STOPS_LT_BASE_URL = "https://www.stops.lt"

FULL_FEED_REQUIRED_COLUMNS: tuple[str, ...] = (
    "Transportas",
    "Marsrutas",
    "MasinosNumeris",
    "Ilguma",
    "Platuma",
)


class HeaderFeedDescriptor(BaseModel):
    """Full-format feed: header row first, columns resolved by name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["header"] = "header"
    required_columns: tuple[str, ...] = FULL_FEED_REQUIRED_COLUMNS
    trip_id_column: str = "ReisoID"
    trip_id_fallback_column: Optional[str] = "Grafikas"


class OffsetFeedDescriptor(BaseModel):
    """Lite-format feed: no header, columns resolved by zero-based index."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["offset"] = "offset"
    min_columns: int = Field(gt=0)
    vehicle_id_index: int
    route_index: int
    latitude_index: int
    longitude_index: int
    speed_index: int
    bearing_index: int
    type_index: Optional[int] = None
    timestamp_index: Optional[int] = None

    @model_validator(mode="after")
    def _check_indices(self) -> OffsetFeedDescriptor:
        for name in (
            "vehicle_id_index",
            "route_index",
            "latitude_index",
            "longitude_index",
            "speed_index",
            "bearing_index",
            "type_index",
            "timestamp_index",
        ):
            value = getattr(self, name)
            if value is None:
                continue
            if value < 0 or value >= self.min_columns:
                msg = f"{name}={value} outside 0..{self.min_columns - 1}"
                raise ValueError(msg)
        return self


FeedDescriptor = Annotated[
    Union[HeaderFeedDescriptor, OffsetFeedDescriptor],
    Field(discriminator="kind"),
]


class CityConfig(BaseModel):
    """One operator's live feed and static archive configuration."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    tier: Literal["gold", "silver", "bronze"]
    gps_url: Optional[str] = None
    feed: Optional[FeedDescriptor] = None
    gtfs_url: str

    @model_validator(mode="after")
    def _check_feed(self) -> CityConfig:
        if (self.gps_url is None) != (self.feed is None):
            msg = f"city {self.id!r}: gps_url and feed must be set together"
            raise ValueError(msg)
        return self

    @property
    def has_live_feed(self) -> bool:
        return self.feed is not None and self.gps_url is not None


def _full_city(city_id: str, name: str) -> CityConfig:
    return CityConfig(
        id=city_id,
        name=name,
        tier="gold",
        gps_url=f"{STOPS_LT_BASE_URL}/{city_id}/gps_full.txt",
        feed=HeaderFeedDescriptor(),
        gtfs_url=f"{STOPS_LT_BASE_URL}/{city_id}/{city_id}/gtfs.zip",
    )


def _lite_city(city_id: str, name: str, descriptor: OffsetFeedDescriptor) -> CityConfig:
    return CityConfig(
        id=city_id,
        name=name,
        tier="silver",
        gps_url=f"{STOPS_LT_BASE_URL}/{city_id}/gps.txt",
        feed=descriptor,
        gtfs_url=f"{STOPS_LT_BASE_URL}/{city_id}/{city_id}/gtfs.zip",
    )


def _static_city(city_id: str, name: str) -> CityConfig:
    return CityConfig(
        id=city_id,
        name=name,
        tier="bronze",
        gtfs_url=f"{STOPS_LT_BASE_URL}/{city_id}/{city_id}/gtfs.zip",
    )


DEFAULT_CITY_CONFIGS: dict[str, CityConfig] = {
    c.id: c
    for c in (
        _full_city("vilnius", "Vilnius"),
        _full_city("kaunas", "Kaunas"),
        _full_city("klaipeda", "Klaipėda"),
        _full_city("alytus", "Alytus"),
        _full_city("druskininkai", "Druskininkai"),
        _lite_city(
            "panevezys",
            "Panevėžys",
            OffsetFeedDescriptor(
                min_columns=9,
                vehicle_id_index=7,
                route_index=1,
                latitude_index=3,
                longitude_index=2,
                speed_index=4,
                bearing_index=5,
                type_index=0,
            ),
        ),
        _lite_city(
            "taurage",
            "Tauragė",
            OffsetFeedDescriptor(
                min_columns=8,
                vehicle_id_index=6,
                route_index=1,
                latitude_index=3,
                longitude_index=2,
                speed_index=4,
                bearing_index=5,
                type_index=0,
            ),
        ),
        _static_city("siauliai", "Šiauliai"),
        _static_city("utena", "Utena"),
    )
}

_city_list_adapter = TypeAdapter(list[CityConfig])


def load_city_configs(path: Path | None = None) -> dict[str, CityConfig]:
    """Return the built-in city matrix, extended or overridden from a JSON file.

    The file holds a JSON array of city objects. Entries whose ``id`` matches a
    built-in city replace it.

    Raises:
        ConfigurationError: If the file cannot be read or an entry is malformed.
    """
    cities = dict(DEFAULT_CITY_CONFIGS)
    if path is None:
        return cities

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read city matrix from {path}: {exc}"
        raise ConfigurationError(msg) from exc

    try:
        overrides = _city_list_adapter.validate_python(raw)
    except ValidationError as exc:
        msg = f"Malformed city matrix in {path}: {exc}"
        raise ConfigurationError(msg) from exc

    for city in overrides:
        cities[city.id] = city

    logger.info(
        "City matrix loaded",
        path=str(path),
        overrides=[c.id for c in overrides],
        total=len(cities),
    )
    return cities
