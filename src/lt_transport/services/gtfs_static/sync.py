"""Static GTFS sync: freshness probe, download, parse, persist."""

from __future__ import annotations

import zipfile
import zlib
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

from lt_transport.errors import NetworkError, SyncError
from lt_transport.logging import get_logger
from lt_transport.models import StaticScheduleSnapshot, SyncResult
from lt_transport.services.gtfs_static.cache import CORE_ENTITIES, ENTITIES
from lt_transport.services.gtfs_static.fetcher import InvalidArchiveError
from lt_transport.services.gtfs_static.parser import TABLE_PARSERS
from lt_transport.services.gtfs_static.reader import GTFS_TABLES, GtfsArchiveReader

if TYPE_CHECKING:
    from lt_transport.cities import CityConfig
    from lt_transport.services.gtfs_static.cache import GtfsCacheStore
    from lt_transport.services.gtfs_static.fetcher import GtfsStaticFetcher

logger = get_logger(__name__)


def build_snapshot(reader: GtfsArchiveReader, city: str) -> StaticScheduleSnapshot:
    """Parse every known table in the archive into a snapshot.

    Raises:
        SyncError: If the archive lacks a core table (routes or stops).
    """
    members = reader.list_files()
    ignored = sorted(
        name
        for name in members
        if not name.endswith("/") and PurePosixPath(name).name not in GTFS_TABLES
    )
    logger.debug("GTFS archive opened", city=city, members=len(members), ignored=ignored)

    values: dict[str, Any] = {}
    seen: set[str] = set()
    for filename, content in reader.iter_entries():
        entity = GTFS_TABLES[filename]
        seen.add(entity)
        values[ENTITIES[entity].field] = TABLE_PARSERS[filename](content)

    missing = CORE_ENTITIES - seen
    if missing:
        raise SyncError(city, f"archive is missing {sorted(missing)}")
    return StaticScheduleSnapshot(**values)


class GtfsSyncService:
    """Runs the sync protocol for one city at a time.

    Callers must not run two syncs for the same city concurrently.
    """

    def __init__(self, fetcher: GtfsStaticFetcher, store: GtfsCacheStore) -> None:
        self.fetcher = fetcher
        self.store = store

    async def sync(self, city: CityConfig, force: bool = False) -> SyncResult:
        """Bring the cached snapshot for ``city`` up to date.

        Returns ``up-to-date`` without downloading when not forced and the
        probed ``Last-Modified`` token is non-null and equals the stored one.

        Raises:
            SyncError: On any probe, download, extraction or write failure.
                The temporary archive is removed on every exit path.
        """
        try:
            token = await self.fetcher.probe_last_modified(city.gtfs_url, city.id)
            meta = self.store.load_metadata(city.id)
            if not force and meta is not None and token is not None and meta.last_modified == token:
                logger.info("GTFS cache up to date", city=city.id, last_modified=token)
                return SyncResult.from_metadata(city.id, meta, "up-to-date")

            data = await self.fetcher.download(city.gtfs_url, city.id)
            with GtfsArchiveReader.from_bytes(data, prefix=f"gtfs-{city.id}-") as reader:
                snapshot = build_snapshot(reader, city.id)

            synced_at = datetime.now(timezone.utc)
            meta = self.store.write_snapshot(city.id, snapshot, token, synced_at)
        except SyncError:
            raise
        # zlib.error and EOFError come from damaged or truncated members
        except (
            NetworkError,
            InvalidArchiveError,
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            OSError,
        ) as exc:
            logger.error("GTFS sync failed", city=city.id, error=str(exc))
            raise SyncError(city.id, str(exc)) from exc

        logger.info("GTFS sync complete", city=city.id, last_modified=token, **meta.counts)
        return SyncResult.from_metadata(city.id, meta, "updated")
