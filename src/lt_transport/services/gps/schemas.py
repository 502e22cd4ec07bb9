"""Per-row validation schemas for the live vehicle feeds.

Rows are validated before they become ``VehiclePosition`` records so that a
format change upstream surfaces as skipped rows rather than garbage output.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_int(value: Any) -> int:
    """Coerce a wire integer. Accepts "123" and "123.0", rejects fractions."""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        number = float(text)
        if not number.is_integer():
            msg = f"not an integer: {text!r}"
            raise ValueError(msg) from None
        return int(number)


def _lenient_number(value: Any) -> float:
    """Numeric field that degrades to 0 when absent, empty or unparsable."""
    if value is None:
        return 0.0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _empty_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class FullFeedRow(BaseModel):
    """One data row of a full-format (header-mapped) feed.

    Field aliases are the column names as published. Columns not listed
    here are ignored; empty optional columns become ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    # Present in every full-format feed
    transport: str = Field(alias="Transportas", min_length=1)
    route: str = Field(alias="Marsrutas")
    vehicle_number: str = Field(alias="MasinosNumeris", min_length=1)
    raw_longitude: int = Field(alias="Ilguma")
    raw_latitude: int = Field(alias="Platuma")
    speed: float = Field(default=0.0, alias="Greitis")
    bearing: float = Field(default=0.0, alias="Azimutas")

    # City-specific
    trip_id: Optional[str] = Field(default=None, alias="ReisoID")
    schedule_code: Optional[str] = Field(default=None, alias="Grafikas")
    trip_start_minutes: Optional[int] = Field(default=None, alias="ReisoPradziaMinutemis")
    delay_seconds: Optional[int] = Field(default=None, alias="NuokrypisSekundemis")
    measured_seconds: Optional[int] = Field(default=None, alias="MatavimoLaikas")
    next_stop_number: Optional[int] = Field(default=None, alias="SekanciosStotelesNum")
    arrival_seconds: Optional[int] = Field(default=None, alias="AtvykimoLaikasSekundemis")
    vehicle_equipment: Optional[str] = Field(default=None, alias="MasinosTipas")
    direction_type: Optional[str] = Field(default=None, alias="KryptiesTipas")
    destination: Optional[str] = Field(default=None, alias="KryptiesPavadinimas")
    gtfs_trip_id: Optional[str] = Field(default=None, alias="ReisoIdGTFS")
    headway_before: Optional[int] = Field(default=None, alias="IntervalasPries")
    headway_after: Optional[int] = Field(default=None, alias="IntervalasPaskui")

    @field_validator("transport", "route", "vehicle_number", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("raw_longitude", "raw_latitude", mode="before")
    @classmethod
    def _coordinate(cls, value: Any) -> int:
        return _to_int(value)

    @field_validator("speed", "bearing", mode="before")
    @classmethod
    def _lenient(cls, value: Any) -> float:
        return _lenient_number(value)

    @field_validator(
        "trip_id",
        "schedule_code",
        "vehicle_equipment",
        "direction_type",
        "destination",
        "gtfs_trip_id",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        value = _empty_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "trip_start_minutes",
        "delay_seconds",
        "measured_seconds",
        "next_stop_number",
        "arrival_seconds",
        "headway_before",
        "headway_after",
        mode="before",
    )
    @classmethod
    def _optional_int(cls, value: Any) -> Optional[int]:
        value = _empty_to_none(value)
        if value is None:
            return None
        return _to_int(value)


class LiteFeedRow(BaseModel):
    """Fields an offset descriptor extracts from one lite-format line."""

    model_config = ConfigDict(frozen=True)

    vehicle_id: str = Field(min_length=1)
    route: str
    raw_latitude: float
    raw_longitude: float
    speed: float = 0.0
    bearing: float = 0.0
    type_code: Optional[str] = None
    measured_seconds: Optional[int] = None

    @field_validator("vehicle_id", "route", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("raw_latitude", "raw_longitude", mode="before")
    @classmethod
    def _coordinate(cls, value: Any) -> float:
        number = float(str(value).strip())
        if not math.isfinite(number):
            msg = f"non-finite coordinate: {value!r}"
            raise ValueError(msg)
        return number

    @field_validator("speed", "bearing", mode="before")
    @classmethod
    def _lenient(cls, value: Any) -> float:
        return _lenient_number(value)

    @field_validator("type_code", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _empty_to_none(value)

    @field_validator("measured_seconds", mode="before")
    @classmethod
    def _optional_seconds(cls, value: Any) -> Optional[int]:
        value = _empty_to_none(value)
        if value is None:
            return None
        seconds = _to_int(value)
        if seconds < 0:
            msg = f"negative seconds from midnight: {seconds}"
            raise ValueError(msg)
        return seconds
