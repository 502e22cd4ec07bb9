"""On-disk GTFS snapshot cache.

Layout, per city::

    <root>/<city>/meta.json
    <root>/<city>/routes.json
    <root>/<city>/stops.json
    ...one JSON blob per entity

A snapshot is written into a staging directory next to the city directory
and swapped in with two renames, so readers see either the complete old
snapshot or the complete new one. A crash between the two renames leaves
no city directory at all, which reads as "not synced" and forces a re-sync.
"""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, NamedTuple

from pydantic import TypeAdapter, ValidationError

from lt_transport.errors import NotSyncedError
from lt_transport.logging import get_logger
from lt_transport.models import (
    Agency,
    CacheMetadata,
    CalendarException,
    Route,
    ServiceCalendar,
    ShapePoint,
    StaticScheduleSnapshot,
    Stop,
    StopTime,
    Trip,
)

if TYPE_CHECKING:
    from datetime import datetime

logger = get_logger(__name__)

META_FILENAME = "meta.json"


class _Entity(NamedTuple):
    adapter: TypeAdapter[Any]
    default: Callable[[], Any]
    field: str


ENTITIES: dict[str, _Entity] = {
    "routes": _Entity(TypeAdapter(dict[str, Route]), dict, "routes"),
    "stops": _Entity(TypeAdapter(list[Stop]), list, "stops"),
    "trips": _Entity(TypeAdapter(dict[str, Trip]), dict, "trips"),
    "shapes": _Entity(TypeAdapter(dict[str, list[ShapePoint]]), dict, "shapes"),
    "calendar": _Entity(TypeAdapter(dict[str, ServiceCalendar]), dict, "calendars"),
    "calendar_dates": _Entity(TypeAdapter(list[CalendarException]), list, "calendar_exceptions"),
    "agencies": _Entity(TypeAdapter(list[Agency]), list, "agencies"),
    "stop_times": _Entity(TypeAdapter(dict[str, list[StopTime]]), dict, "stop_times"),
}

# A cache missing either of these is not a valid snapshot
CORE_ENTITIES = frozenset({"routes", "stops"})


class GtfsCacheStore:
    """Reads and atomically replaces per-city GTFS snapshots under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def city_dir(self, city: str) -> Path:
        return self.root / city

    def load_metadata(self, city: str) -> CacheMetadata | None:
        """Return the stored metadata, or None if the city has never been synced."""
        path = self.city_dir(city) / META_FILENAME
        if not path.exists():
            return None
        try:
            return CacheMetadata.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.warning("Unreadable GTFS cache metadata", city=city, error=str(exc))
            return None

    def load_entity(self, city: str, entity: str) -> Any:
        """Load one entity blob.

        Extended entities missing from a confirmed sync load as empty
        collections.

        Raises:
            KeyError: If ``entity`` is not a known entity name.
            NotSyncedError: If the city has no metadata, a core entity is
                missing, or a blob cannot be read.
        """
        entry = ENTITIES[entity]
        if self.load_metadata(city) is None:
            raise NotSyncedError(city)

        path = self.city_dir(city) / f"{entity}.json"
        if not path.exists():
            if entity in CORE_ENTITIES:
                raise NotSyncedError(city, f"cache is missing {entity}")
            return entry.default()

        try:
            return entry.adapter.validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            raise NotSyncedError(city, f"cached {entity} unreadable") from exc

    def load_snapshot(self, city: str) -> StaticScheduleSnapshot:
        """Load every entity into one snapshot.

        Raises:
            NotSyncedError: As for ``load_entity``.
        """
        values = {entry.field: self.load_entity(city, name) for name, entry in ENTITIES.items()}
        snapshot = StaticScheduleSnapshot(**values)
        logger.debug("GTFS snapshot loaded", city=city, **snapshot.entity_counts())
        return snapshot

    def write_snapshot(
        self,
        city: str,
        snapshot: StaticScheduleSnapshot,
        last_modified: str | None,
        synced_at: datetime,
    ) -> CacheMetadata:
        """Persist ``snapshot`` and its metadata, replacing any previous one."""
        meta = CacheMetadata(
            last_modified=last_modified,
            synced_at=synced_at,
            counts=snapshot.entity_counts(),
        )

        self.root.mkdir(parents=True, exist_ok=True)
        token = uuid.uuid4().hex
        staging = self.root / f".{city}.staging-{token}"
        retired = self.root / f".{city}.old-{token}"
        target = self.city_dir(city)

        try:
            staging.mkdir()
            for name, entry in ENTITIES.items():
                value = getattr(snapshot, entry.field)
                (staging / f"{name}.json").write_bytes(entry.adapter.dump_json(value))
            (staging / META_FILENAME).write_text(meta.model_dump_json(indent=2), encoding="utf-8")

            if target.exists():
                target.rename(retired)
            try:
                staging.rename(target)
            except OSError:
                if retired.exists():
                    retired.rename(target)
                raise
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        shutil.rmtree(retired, ignore_errors=True)
        logger.info(
            "GTFS snapshot written",
            city=city,
            path=str(target),
            last_modified=last_modified,
            **meta.counts,
        )
        return meta
