"""Live vehicle feed fetcher."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

from lt_transport.errors import NetworkError
from lt_transport.logging import get_logger
from lt_transport.services.normalization.encoding import decode_baltic_text

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


@dataclass(frozen=True)
class FetchedFeed:
    """Decoded feed body plus the instant it arrived."""

    text: str
    fetched_at: datetime
    size_bytes: int


class GpsFeedFetcher:
    """Downloads a live feed body. Failures are surfaced immediately, never retried."""

    def __init__(self, timeout_sec: float = DEFAULT_TIMEOUT_SEC, user_agent: str | None = None) -> None:
        self.timeout_sec = timeout_sec
        self.user_agent = user_agent

    async def fetch(self, url: str, city: str) -> FetchedFeed:
        """Fetch and decode one feed.

        ``fetched_at`` is the UTC instant the response was received; decoders
        use it as the reference time so every row of one fetch shares it.

        Raises:
            NetworkError: On HTTP error status, timeout or transport failure.
        """
        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        logger.debug("Fetching vehicle feed", city=city, url=url)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_sec),
                follow_redirects=True,
                headers=headers,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.content
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"Feed request for {city} failed with HTTP {status}"
            raise NetworkError(msg, city, status_code=status) from exc
        except httpx.TimeoutException as exc:
            msg = f"Feed request for {city} timed out after {self.timeout_sec}s"
            raise NetworkError(msg, city) from exc
        except httpx.RequestError as exc:
            msg = f"Feed request for {city} failed: {exc}"
            raise NetworkError(msg, city) from exc

        fetched_at = datetime.now(timezone.utc)
        text = decode_baltic_text(data)
        logger.info("Vehicle feed downloaded", city=city, size_bytes=len(data))
        return FetchedFeed(text=text, fetched_at=fetched_at, size_bytes=len(data))
