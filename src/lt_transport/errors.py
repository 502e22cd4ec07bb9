"""Exception hierarchy for the transport client."""

from __future__ import annotations


class TransportError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, city: str | None = None) -> None:
        super().__init__(message)
        self.city = city


class ConfigurationError(TransportError):
    """A feed descriptor or city configuration cannot be used.

    Raised before any row is processed: a missing mandatory header column,
    a malformed offset descriptor, an unreadable city matrix file.
    """


class InvalidCityError(ConfigurationError):
    """Raised when an unknown city id is requested."""

    def __init__(self, city: str) -> None:
        super().__init__(f"Invalid city ID: {city!r}. Use get_cities() to see available options.")
        self.city = None
        self.requested_city = city


class RowValidationError(TransportError):
    """A single feed row failed coercion or range checks.

    Decoders absorb this error: the row is skipped and parsing continues.
    """

    def __init__(self, message: str, city: str | None = None, line: int | None = None) -> None:
        where = f" at line {line}" if line is not None else ""
        super().__init__(f"Invalid row{where}: {message}", city)
        self.line = line


class NetworkError(TransportError):
    """An HTTP request failed or timed out. Never retried internally."""

    def __init__(self, message: str, city: str, status_code: int | None = None) -> None:
        super().__init__(message, city)
        self.status_code = status_code


class SyncError(TransportError):
    """Static GTFS archive probe, download or extraction failed."""

    def __init__(self, city: str, message: str) -> None:
        super().__init__(f"GTFS sync failed for {city}: {message}", city)


class NotSyncedError(TransportError):
    """Static GTFS data was requested for a city that has never been synced."""

    def __init__(self, city: str, detail: str | None = None) -> None:
        message = f"GTFS data for {city} is not synced. Call sync({city!r}) first."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, city)


class UnsupportedFeedError(TransportError):
    """The city publishes no live vehicle feed at all."""

    def __init__(self, city: str) -> None:
        super().__init__(
            f"Live vehicle data is not available for {city}. Use GTFS static data instead.",
            city,
        )
