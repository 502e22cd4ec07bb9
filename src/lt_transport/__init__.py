"""Normalized real-time vehicle positions for Lithuanian public transport."""

from lt_transport.client import TransportClient
from lt_transport.errors import (
    ConfigurationError,
    InvalidCityError,
    NetworkError,
    NotSyncedError,
    RowValidationError,
    SyncError,
    TransportError,
    UnsupportedFeedError,
)
from lt_transport.models import VehiclePosition, VehicleType

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "InvalidCityError",
    "NetworkError",
    "NotSyncedError",
    "RowValidationError",
    "SyncError",
    "TransportClient",
    "TransportError",
    "UnsupportedFeedError",
    "VehiclePosition",
    "VehicleType",
]
