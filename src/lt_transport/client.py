"""Transport client: live vehicle positions plus cached static schedule data."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from lt_transport.cities import OffsetFeedDescriptor, load_city_configs
from lt_transport.config import get_settings
from lt_transport.errors import InvalidCityError, NotSyncedError, UnsupportedFeedError
from lt_transport.logging import bind_context, clear_context, get_logger
from lt_transport.models import SyncResult
from lt_transport.services.enrichment.matcher import EnrichmentIndex, enrich_vehicles
from lt_transport.services.gps.decoder import DecodeOptions, decode_feed
from lt_transport.services.gps.fetcher import GpsFeedFetcher
from lt_transport.services.gtfs_static.cache import GtfsCacheStore
from lt_transport.services.gtfs_static.fetcher import GtfsStaticFetcher
from lt_transport.services.gtfs_static.sync import GtfsSyncService

if TYPE_CHECKING:
    from lt_transport.cities import CityConfig
    from lt_transport.config import Settings
    from lt_transport.models import (
        Agency,
        CalendarException,
        Route,
        ServiceCalendar,
        ShapePoint,
        StaticScheduleSnapshot,
        Stop,
        StopTime,
        Trip,
        VehiclePosition,
    )

logger = get_logger(__name__)


class TransportClient:
    """Unified access to Lithuanian transit data.

    Usage:
        client = TransportClient()
        await client.sync("panevezys")          # static data, enables enrichment
        vehicles = await client.get_vehicles("panevezys")
        stops = client.get_stops("panevezys")

    Syncs for the same city must not run concurrently. Different cities are
    independent.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cities: dict[str, CityConfig] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._cities = cities if cities is not None else load_city_configs(self.settings.cities_file)
        self._options = DecodeOptions.from_settings(self.settings)
        self._gps_fetcher = GpsFeedFetcher(
            timeout_sec=self.settings.request_timeout_sec,
            user_agent=self.settings.user_agent,
        )
        self._store = GtfsCacheStore(self.settings.cache_dir)
        self._sync_service = GtfsSyncService(
            GtfsStaticFetcher(
                timeout_sec=self.settings.request_timeout_sec,
                download_timeout_sec=self.settings.gtfs_download_timeout_sec,
                user_agent=self.settings.user_agent,
            ),
            self._store,
        )

        # Per-city snapshot generation, bumped by every "updated" sync.
        # Derived caches remember the generation they were built from.
        self._generations: dict[str, int] = {}
        self._snapshots: dict[str, tuple[int, StaticScheduleSnapshot]] = {}
        self._indexes: dict[str, tuple[int, EnrichmentIndex | None]] = {}
        self._last_sync: dict[str, float] = {}

    # Live data

    async def get_vehicles(self, city: str) -> list[VehiclePosition]:
        """Fetch, decode, filter and (for lite feeds) enrich live positions.

        Enrichment uses whatever snapshot is already cached; it never
        triggers a sync.

        Raises:
            InvalidCityError: Unknown city id.
            UnsupportedFeedError: The city publishes no live feed.
            NetworkError: The feed could not be fetched.
            ConfigurationError: The feed header lacks a required column.
        """
        config = self.get_city_config(city)
        if config.feed is None or config.gps_url is None:
            raise UnsupportedFeedError(city)

        bind_context(city=city)
        try:
            feed = await self._gps_fetcher.fetch(config.gps_url, city)
            positions = decode_feed(feed.text, city, config.feed, feed.fetched_at, self._options)

            if isinstance(config.feed, OffsetFeedDescriptor) and self.settings.auto_enrich:
                index = self._enrichment_index(city)
                if index is not None:
                    positions = enrich_vehicles(positions, index)
                else:
                    logger.debug("No cached routes for enrichment")

            logger.info("Vehicles fetched", count=len(positions))
            return positions
        finally:
            clear_context("city")

    # Static data

    async def sync(self, city: str, force: bool = False) -> SyncResult:
        """Sync the static GTFS snapshot for ``city``.

        Calls within ``sync_min_interval_sec`` of the previous sync for the
        same city return the stored result as ``up-to-date`` without any
        network request, unless ``force`` is set.

        Raises:
            InvalidCityError: Unknown city id.
            SyncError: Probe, download or extraction failed.
        """
        config = self.get_city_config(city)
        bind_context(city=city)
        try:
            now = time.monotonic()
            last = self._last_sync.get(city)
            if not force and last is not None and now - last < self.settings.sync_min_interval_sec:
                meta = self._store.load_metadata(city)
                if meta is not None:
                    logger.debug("Sync throttled", seconds_since_last=round(now - last, 1))
                    return SyncResult.from_metadata(city, meta, "up-to-date")

            result = await self._sync_service.sync(config, force=force)
            self._last_sync[city] = now
            if result.status == "updated":
                self._generations[city] = self._generations.get(city, 0) + 1
            return result
        finally:
            clear_context("city")

    def get_routes(self, city: str) -> list[Route]:
        """All routes, one entry per route id."""
        return self._snapshot(city).unique_routes()

    def get_stops(self, city: str) -> list[Stop]:
        return list(self._snapshot(city).stops)

    def get_trips(self, city: str) -> dict[str, Trip]:
        return dict(self._snapshot(city).trips)

    def get_shapes(self, city: str) -> dict[str, list[ShapePoint]]:
        return {k: list(v) for k, v in self._snapshot(city).shapes.items()}

    def get_calendar(self, city: str) -> dict[str, ServiceCalendar]:
        return dict(self._snapshot(city).calendars)

    def get_calendar_dates(self, city: str) -> list[CalendarException]:
        return list(self._snapshot(city).calendar_exceptions)

    def get_agencies(self, city: str) -> list[Agency]:
        return list(self._snapshot(city).agencies)

    def get_schedule(self, city: str, trip_id: str) -> list[StopTime]:
        """Stop times of one trip in stop-sequence order; empty if the trip is unknown."""
        return list(self._snapshot(city).stop_times.get(trip_id, []))

    # Cities

    def get_cities(self) -> list[str]:
        return list(self._cities)

    def get_city_config(self, city: str) -> CityConfig:
        """Raises InvalidCityError for an unknown city id."""
        try:
            return self._cities[city]
        except KeyError:
            raise InvalidCityError(city) from None

    # Internals

    def _snapshot(self, city: str) -> StaticScheduleSnapshot:
        """Return the cached snapshot, reloading it if a sync has replaced it.

        Raises:
            InvalidCityError: Unknown city id.
            NotSyncedError: The city has never been synced.
        """
        self.get_city_config(city)
        generation = self._generations.get(city, 0)
        cached = self._snapshots.get(city)
        if cached is not None and cached[0] == generation:
            return cached[1]
        snapshot = self._store.load_snapshot(city)
        self._snapshots[city] = (generation, snapshot)
        return snapshot

    def _enrichment_index(self, city: str) -> EnrichmentIndex | None:
        generation = self._generations.get(city, 0)
        cached = self._indexes.get(city)
        if cached is not None and cached[0] == generation:
            return cached[1]
        try:
            snapshot = self._snapshot(city)
        except NotSyncedError:
            # None until a sync bumps the generation
            self._indexes[city] = (generation, None)
            return None
        index = EnrichmentIndex.from_routes(snapshot.unique_routes(), generation)
        self._indexes[city] = (generation, index)
        logger.debug("Enrichment index built", city=city, generation=generation, routes=len(index))
        return index
