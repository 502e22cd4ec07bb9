"""GTFS static archive fetcher: freshness probe, download and ZIP validation."""

from __future__ import annotations

import io
import zipfile

import httpx

from lt_transport.errors import NetworkError
from lt_transport.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_DOWNLOAD_TIMEOUT_SEC = 30.0

# ZIP magic bytes
ZIP_MAGIC = b"PK\x03\x04"


class InvalidArchiveError(Exception):
    """Raised when downloaded content is not a valid ZIP."""


class GtfsStaticFetcher:
    """Probes and downloads a city's static GTFS archive. No retries."""

    def __init__(
        self,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        download_timeout_sec: float = DEFAULT_DOWNLOAD_TIMEOUT_SEC,
        user_agent: str | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self.download_timeout_sec = download_timeout_sec
        self.user_agent = user_agent

    def _client(self, timeout_sec: float) -> httpx.AsyncClient:
        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        return httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            follow_redirects=True,
            headers=headers,
        )

    async def probe_last_modified(self, url: str, city: str) -> str | None:
        """Return the archive's ``Last-Modified`` header without downloading the body.

        Raises:
            NetworkError: On timeout or transport failure.
        """
        try:
            async with self._client(self.timeout_sec) as client:
                response = await client.head(url)
        except httpx.RequestError as exc:
            msg = f"GTFS freshness probe for {city} failed: {exc}"
            raise NetworkError(msg, city) from exc

        last_modified = response.headers.get("Last-Modified")
        logger.debug(
            "GTFS archive probed",
            city=city,
            status=response.status_code,
            last_modified=last_modified,
        )
        return last_modified

    async def download(self, url: str, city: str) -> bytes:
        """Download the archive and check that it is a ZIP.

        Raises:
            NetworkError: On HTTP error status, timeout or transport failure.
            InvalidArchiveError: If the body is not a valid ZIP.
        """
        logger.info("Downloading GTFS archive", city=city, url=url)
        try:
            async with self._client(self.download_timeout_sec) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.content
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"HTTP {status} downloading GTFS archive"
            raise NetworkError(msg, city, status_code=status) from exc
        except httpx.RequestError as exc:
            msg = f"GTFS download failed: {exc}"
            raise NetworkError(msg, city) from exc

        self._validate_zip(data)
        logger.info("GTFS archive downloaded", city=city, size_bytes=len(data))
        return data

    @staticmethod
    def _validate_zip(data: bytes) -> None:
        """Validate that data starts with ZIP magic bytes."""
        if len(data) < 4 or data[:4] != ZIP_MAGIC:
            msg = "Downloaded content is not a valid ZIP file"
            raise InvalidArchiveError(msg)
        if not zipfile.is_zipfile(io.BytesIO(data)):
            msg = "Downloaded content is not a valid ZIP file"
            raise InvalidArchiveError(msg)
